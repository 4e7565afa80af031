from wondernav.handlers.chat_handler import lambda_handler

## Handler path in template.yaml: scripts/core_lambda.lambda_handler
__all__ = ["lambda_handler"]
