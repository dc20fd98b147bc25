from .codec import RedirectStateCodec

__all__ = ["RedirectStateCodec"]
