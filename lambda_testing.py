import json

from wondernav.handlers.chat_handler import lambda_handler


def test_lambda_locally():
    """
    Run the handler locally against real AWS, using credentials from .env.
    """
    print("Testing Lambda Function Locally")

    event = {
        "httpMethod": "POST",
        "path": "/chats",
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"input": "3 days in Kyoto"}),
        "isBase64Encoded": False,
    }

    # Mock context object
    class MockContext:
        function_name = "test_chat_lambda"
        memory_limit_in_mb = 128

        @staticmethod
        def get_remaining_time_in_millis():
            return 30000

    result = lambda_handler(event, MockContext())

    body = json.loads(result['body'])
    print(f"Status: {result['statusCode']}")
    if result['statusCode'] == 200:
        print(f"Output Preview: {body['output'][:200]}...")
    else:
        print(f"Error: {body['error']} - {body['message']}")


if __name__ == "__main__":
    # Run local tests
    test_lambda_locally()
