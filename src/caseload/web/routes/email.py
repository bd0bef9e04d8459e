"""Email sending endpoint."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from caseload.core.mailer import (
    DEFAULT_SMTP_HOST,
    DEFAULT_SMTP_PORT,
    EmailError,
    OutgoingEmail,
    send_email,
)
from caseload.web.schemas import EmailRequest, EmailResponse

router = APIRouter(prefix="/api/email", tags=["email"])


@router.post("/send", response_model=EmailResponse)
def send(body: EmailRequest):
    """Send a plain-text email through the caller's SMTP account."""
    if not body.smtp_user or not body.smtp_password:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "SMTP credentials are required",
                "details": [
                    {"field": "smtpUser", "message": "SMTP username is required"},
                    {"field": "smtpPassword", "message": "SMTP password is required"},
                ],
            },
        )

    email = OutgoingEmail(
        to=body.to,
        subject=body.subject,
        body=body.body,
        from_email=body.from_email,
        from_name=body.from_name,
        smtp_host=body.smtp_host or DEFAULT_SMTP_HOST,
        smtp_port=body.smtp_port or DEFAULT_SMTP_PORT,
        smtp_user=body.smtp_user,
        smtp_password=body.smtp_password,
        cc=body.cc,
        bcc=body.bcc,
    )
    try:
        message_id = send_email(email)
    except EmailError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    return EmailResponse(success=True, message_id=message_id, message="Email sent successfully")
