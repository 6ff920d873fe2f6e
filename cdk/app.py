#!/usr/bin/env python3
import os
import aws_cdk as cdk
from stacks.api_stack import ApiStack, DEFAULT_REVISION

app = cdk.App()

env = cdk.Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION", "eu-west-1")
)

klaviyo_list_id = app.node.try_get_context("klaviyo_list_id") or os.getenv("KLAVIYO_LIST_ID", "")
klaviyo_revision = app.node.try_get_context("klaviyo_revision") or DEFAULT_REVISION
profile_source = app.node.try_get_context("profile_source") or "cashback.sandstone.nl"

# Deploy subscribe API (Lambda + API GW + Secrets Manager key)
api = ApiStack(app, "SubscribeApiStack",
               env=env,
               klaviyo_list_id=klaviyo_list_id,
               klaviyo_revision=klaviyo_revision,
               profile_source=profile_source,
               enable_xray=True)

cdk.CfnOutput(api, "ApiUrl", value=api.api_execute_url)
cdk.CfnOutput(api, "KlaviyoApiKeySecretArn", value=api.api_key_secret_arn)

app.synth()
