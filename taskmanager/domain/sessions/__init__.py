from .models import Session

__all__ = ["Session"]
