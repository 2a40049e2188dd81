from helf.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
