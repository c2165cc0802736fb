import os
import random
import time
from pathlib import Path

from flask import current_app
from werkzeug.utils import secure_filename

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
PROFILE_URL_PREFIX = "/static/uploads/profiles"


class UploadRejected(ValueError):
    pass


def save_profile_image(file_storage):
    """Store an uploaded profile image and return its public URL."""
    if file_storage is None or not file_storage.filename:
        raise UploadRejected("No file uploaded.")
    extension = Path(secure_filename(file_storage.filename)).suffix.lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise UploadRejected("Unsupported image type.")

    upload_dir = Path(current_app.config["UPLOAD_FOLDER"])
    upload_dir.mkdir(parents=True, exist_ok=True)
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    filename = f"profile-{unique_suffix}{extension}"
    file_storage.save(os.path.join(upload_dir, filename))
    return f"{PROFILE_URL_PREFIX}/{filename}"
