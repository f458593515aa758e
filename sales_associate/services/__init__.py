"""
services/ — Business logic behind the routers.

Record store access, cross-site aggregation, ID issuance, validation,
the status pipeline and email notifications. Nothing here imports FastAPI.
"""
