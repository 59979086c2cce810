"""Import all models so SQLAlchemy metadata knows about them."""
from securepad.models.base import Base
from securepad.models.pad import Pad
from securepad.models.attachment import Attachment

__all__ = ["Base", "Pad", "Attachment"]
