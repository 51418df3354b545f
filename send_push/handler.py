"""
AWS Lambda handler for send-push.

Wraps the FastAPI app with Mangum. Point a Lambda function URL or API Gateway
route at `send_push.handler.handler`.
"""
from mangum import Mangum

from send_push.app import app

# lifespan="off" since nothing needs startup/shutdown hooks
handler = Mangum(app, lifespan="off")
