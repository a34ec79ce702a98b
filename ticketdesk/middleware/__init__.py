from .json_body import JSONContentTypeMiddleware

__all__ = ["JSONContentTypeMiddleware"]
