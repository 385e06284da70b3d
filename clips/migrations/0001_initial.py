import clips.models
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Clip',
            fields=[
                ('id', models.CharField(default=clips.models.generate_nanoid, editable=False, max_length=21, primary_key=True, serialize=False)),
                ('source_url', models.URLField(max_length=2048)),
                ('media_kind', models.CharField(blank=True, choices=[('video', 'Video'), ('slideshow', 'Slideshow')], max_length=10)),
                ('status', models.CharField(choices=[('processing', 'Processing'), ('ready', 'Ready'), ('failed', 'Failed')], db_index=True, default='processing', max_length=20)),
                ('primary_path', models.CharField(blank=True, max_length=500)),
                ('thumbnail_path', models.CharField(blank=True, max_length=500)),
                ('image_paths', models.JSONField(blank=True, default=list)),
                ('audio_path', models.CharField(blank=True, max_length=500)),
                ('log_path', models.CharField(blank=True, max_length=500)),
                ('duration_seconds', models.IntegerField(blank=True, null=True)),
                ('file_size_bytes', models.BigIntegerField(blank=True, null=True)),
                ('source_author', models.CharField(blank=True, max_length=200)),
                ('source_caption', models.TextField(blank=True)),
                ('user_message', models.CharField(blank=True, max_length=100)),
                ('error_message', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clips', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'created_at'], name='clip_status_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='Favorite',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('clip', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='favorites', to='clips.clip')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='favorites', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('user', 'clip'), name='unique_favorite_per_user')],
            },
        ),
    ]
