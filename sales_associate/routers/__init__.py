"""
routers/ — FastAPI route modules for the dashboard and the webhooks.

Routers check input, call services/, and shape responses. Sheet access
and status rules live in services/.
"""
