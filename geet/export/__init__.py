"""Export helpers: Drive tasks and direct downloads."""

from .download import download_image
from .drive import export_img

__all__ = ["download_image", "export_img"]
