import logging
import os
import shutil

from django.db.models.signals import pre_delete
from django.dispatch import receiver

from clips.models import Clip

logger = logging.getLogger(__name__)


@receiver(pre_delete, sender=Clip)
def cleanup_clip_files(sender, instance, **kwargs):
    """
    Delete associated files and directories when a Clip is deleted.
    This handles both single and bulk deletions; file errors never block
    removing the row.
    """
    for path in instance.referenced_files():
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Error deleting %s: %s", path, e)

    for directory in (instance.get_base_dir(), instance.get_work_dir()):
        if os.path.exists(directory):
            try:
                shutil.rmtree(directory)
            except OSError as e:
                logger.debug("Error deleting directory %s: %s", directory, e)
