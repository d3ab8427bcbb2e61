# backend/routes/verification.py
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from utils.notifications import get_notifier
from utils.ttl_store import TTLStore, get_ttl_store
from services import otp
from services.errors import ValidationError
from schemas.user import OtpVerify, UserResponse

router = APIRouter(prefix="/verification", tags=["Verification"])


# Send a one-time code to the account's email
@router.post("/email/send")
def send_email_otp(
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    store: TTLStore = Depends(get_ttl_store),
):
    if current_user.email_verified:
        raise ValidationError("Email is already verified")

    code = otp.generate_otp(store, current_user.email)
    background_tasks.add_task(
        get_notifier().send, current_user.email, "verification.email_otp", {"otp": code}
    )
    return {"message": "OTP sent to your email"}


@router.post("/email/verify", response_model=UserResponse)
def verify_email_otp(
    payload: OtpVerify,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: TTLStore = Depends(get_ttl_store),
):
    try:
        otp.verify_otp(store, current_user.email, payload.otp)
    except ValidationError as e:
        write_log(db, user_id=current_user.id, action="EMAIL_VERIFY", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"reason": e.message})
        raise

    current_user.email_verified = True
    db.commit()
    db.refresh(current_user)
    write_log(db, user_id=current_user.id, action="EMAIL_VERIFY", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return current_user
