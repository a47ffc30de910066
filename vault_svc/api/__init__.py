"""
HTTP layer: multipart intake and FastAPI routers.
"""
