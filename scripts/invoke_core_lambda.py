''' How to run:
    python scripts/invoke_core_lambda.py --input "3 days in Kyoto" --function-name WonderNAV-AddChatFunction
    python scripts/invoke_core_lambda.py --input "3 days in Kyoto" --url https://<api-id>.execute-api.us-east-1.amazonaws.com/Prod/chats/
'''

import argparse
import json
import os

import boto3
import httpx
from dotenv import load_dotenv

load_dotenv()


def invoke_function(function_name: str, user_input: str) -> dict:
    """Invoke the deployed function directly with an API Gateway shaped event."""
    client = boto3.client("lambda", region_name=os.getenv("AWS_REGION", "us-east-1"))
    event = {
        "httpMethod": "POST",
        "path": "/chats",
        "body": json.dumps({"input": user_input}),
        "isBase64Encoded": False,
    }
    result = client.invoke(FunctionName=function_name, Payload=json.dumps(event).encode("utf-8"))
    return json.loads(result["Payload"].read())


def post_to_api(url: str, user_input: str) -> dict:
    resp = httpx.post(url, json={"input": user_input}, timeout=60.0)
    return {"statusCode": resp.status_code, "body": resp.text}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Send one prompt to the deployed chat API")
    parser.add_argument("--input", required=True, help="Trip description, e.g. '3 days in Kyoto'")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--function-name", help="Lambda function name or ARN")
    target.add_argument("--url", help="ChatsApiEndpoint output of the stack")
    args = parser.parse_args()

    if args.function_name:
        result = invoke_function(args.function_name, args.input)
    else:
        result = post_to_api(args.url, args.input)

    print(f"Status: {result['statusCode']}")
    print(result["body"])
