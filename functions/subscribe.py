import base64
import json

import structlog

from klaviyo_client import KlaviyoClient, first_profile_id_from, profile_id_from
from logging_config import configure_logging, email_domain, sanitize_for_logging, set_correlation_id
from secret_store import fetch_api_key
from settings import Settings
from submission import SubmissionPayload, ValidationFailure, validate_submission

logger = structlog.get_logger()

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Klaviyo answers a create for an existing email with 409 Conflict
DUPLICATE_PROFILE_STATUS = 409


def _response(status: int, payload: dict) -> dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": JSON_CONTENT_TYPE},
        "body": json.dumps(payload),
    }


def _request_method(event: dict) -> str:
    # REST API proxy events carry httpMethod, HTTP API (v2) events requestContext.http
    method = event.get("httpMethod") or ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return (method or "").upper()


def _read_json(event: dict):
    """Decode the request body; raises ValueError when it is not JSON."""
    body = event.get("body") or ""
    if event.get("isBase64Encoded") and body:
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body) if body else {}


def resolve_api_key(settings: Settings) -> Settings:
    """Fill in the Klaviyo key from Secrets Manager when only its secret id is configured."""
    if settings.klaviyo_private_api_key or not settings.klaviyo_api_key_secret_id:
        return settings
    api_key = fetch_api_key(settings.klaviyo_api_key_secret_id)
    return settings.model_copy(update={"klaviyo_private_api_key": api_key})


def subscribe_profile(client: KlaviyoClient, submission: SubmissionPayload, settings: Settings) -> dict:
    """Create (or find) the profile, then add it to the configured list."""
    profile_res = client.create_profile(
        email=submission.email,
        first_name=submission.first_name,
        last_name=submission.last_name,
        properties=submission.profile_properties(settings.profile_source),
    )
    profile_id = profile_id_from(profile_res)

    if not profile_id and profile_res.status == DUPLICATE_PROFILE_STATUS:
        logger.info("Profile already exists, looking up by email")
        lookup = client.find_profiles_by_email(submission.email)
        profile_id = first_profile_id_from(lookup)

    if not profile_id:
        logger.error("Failed to create or find profile", klaviyo_status=profile_res.status)
        return _response(500, {
            "error": "Failed to create or find profile",
            "klaviyo_status": profile_res.status,
            "klaviyo": profile_res.diagnostic,
        })

    add_res = client.add_profile_to_list(settings.klaviyo_list_id, profile_id)
    if not add_res.ok:
        logger.error(
            "Failed to add profile to list",
            profile_id=sanitize_for_logging(profile_id),
            klaviyo_status=add_res.status,
        )
        return _response(500, {
            "error": "Failed to add profile to list",
            "klaviyo_status": add_res.status,
            "klaviyo": add_res.diagnostic,
        })

    logger.info("Profile subscribed", profile_id=sanitize_for_logging(profile_id))
    return _response(200, {"ok": True})


def handle_subscribe(event: dict, settings: Settings, http_client=None) -> dict:
    """Validate one form submission and forward it to Klaviyo."""
    if _request_method(event) != "POST":
        return _response(405, {"error": "Method not allowed"})

    settings = resolve_api_key(settings)

    if not settings.is_complete:
        missing = settings.missing()
        logger.error("Missing configuration", missing=[k for k, v in missing.items() if v])
        return _response(500, {"error": "Missing env vars", "missing": missing})

    try:
        payload = _read_json(event)
    except ValueError:
        return _response(400, {"error": "Invalid JSON body"})

    submission = validate_submission(payload)
    if isinstance(submission, ValidationFailure):
        logger.info("Submission rejected", error=submission.error, fields=list(submission.fields))
        return _response(400, {"error": submission.error})

    logger.info(
        "Submission received",
        email_domain=email_domain(submission.email),
        language=submission.language,
        utm_source=submission.utm_source,
    )

    try:
        with KlaviyoClient(
            api_key=settings.klaviyo_private_api_key,
            revision=settings.klaviyo_revision,
            base_url=settings.klaviyo_base_url,
            http_client=http_client,
        ) as client:
            return subscribe_profile(client, submission, settings)
    except Exception as e:
        logger.exception("Subscribe failed")
        return _response(500, {"error": "Server error", "detail": str(e) or e.__class__.__name__})


def handler(event, context):
    settings = Settings()
    configure_logging(settings.service_name, settings.log_level)
    set_correlation_id(getattr(context, "aws_request_id", "") or "")
    return handle_subscribe(event or {}, settings)
