from aws_cdk import (
    BundlingOptions,
    Stack,
    Duration,
    aws_apigateway as apigw,
    aws_lambda as _lambda,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

DEFAULT_REVISION = "2024-10-15"


class ApiStack(Stack):
    def __init__(self, scope: Construct, construct_id: str,
                 klaviyo_list_id: str,
                 klaviyo_revision: str = DEFAULT_REVISION,
                 profile_source: str = "cashback.sandstone.nl",
                 enable_xray: bool = True,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Klaviyo private key; set the value out of band, e.g.
        # aws secretsmanager put-secret-value --secret-id <arn> --secret-string pk_...
        api_key_secret = secretsmanager.Secret(self, "KlaviyoApiKey",
                                               description="Klaviyo private API key for the subscribe function")

        runtime = _lambda.Runtime.PYTHON_3_12

        # Install functions/requirements.txt next to the handler modules
        code = _lambda.Code.from_asset("../functions",
                                       bundling=BundlingOptions(
                                           image=runtime.bundling_image,
                                           command=[
                                               "bash", "-c",
                                               "pip install -r requirements.txt -t /asset-output && cp -au . /asset-output",
                                           ]))

        subscribe_fn = _lambda.Function(self, "SubscribeFn",
                                        runtime=runtime,
                                        handler="subscribe.handler",
                                        code=code,
                                        environment={
                                            "KLAVIYO_API_KEY_SECRET_ID": api_key_secret.secret_arn,
                                            "KLAVIYO_LIST_ID": klaviyo_list_id,
                                            "KLAVIYO_REVISION": klaviyo_revision,
                                            "PROFILE_SOURCE": profile_source,
                                            "SERVICE_NAME": "subscribe",
                                        },
                                        timeout=Duration.seconds(15),
                                        tracing=_lambda.Tracing.ACTIVE if enable_xray else _lambda.Tracing.DISABLED,
                                        log_retention=logs.RetentionDays.TWO_WEEKS)

        api_key_secret.grant_read(subscribe_fn)

        # API Gateway
        api = apigw.RestApi(self, "HttpApi",
                            deploy_options=apigw.StageOptions(metrics_enabled=True, logging_level=apigw.MethodLoggingLevel.INFO, tracing_enabled=enable_xray),
                            cloud_watch_role=True)

        # /api/subscribe, every method goes to the function so it can answer 405 itself
        subscribe = api.root.add_resource("api").add_resource("subscribe")
        subscribe_lambda_integration = apigw.LambdaIntegration(subscribe_fn, proxy=True)
        subscribe.add_method("ANY", subscribe_lambda_integration)

        self.api_execute_url = f"{api.url}"
        self.api_key_secret_arn = api_key_secret.secret_arn
