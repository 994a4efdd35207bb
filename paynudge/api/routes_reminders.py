from fastapi import APIRouter, Query, Request, Response, status

from paynudge.api.dependencies import CurrentUserDep, DbDep
from paynudge.api.rate_limit import RATE_LIMITS, limiter
from paynudge.models import schemas
from paynudge.models.models import ReminderTone
from paynudge.services.reminders.settings_service import ReminderSettingsService

router = APIRouter()


# ---------------- Rules -----------------
@router.get("/rules", response_model=list[schemas.ReminderRuleOut])
def list_rules(current_user_id: CurrentUserDep, db: DbDep):
    return ReminderSettingsService(db).list_rules(current_user_id)


@router.post("/rules", response_model=schemas.ReminderRuleOut, status_code=status.HTTP_201_CREATED)
def create_rule(data: schemas.ReminderRuleCreate, current_user_id: CurrentUserDep, db: DbDep):
    return ReminderSettingsService(db).create_rule(current_user_id, data)


@router.patch("/rules/{rule_id}", response_model=schemas.ReminderRuleOut)
def update_rule(rule_id: int, data: schemas.ReminderRuleUpdate, current_user_id: CurrentUserDep, db: DbDep):
    return ReminderSettingsService(db).update_rule(current_user_id, rule_id, data)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(rule_id: int, current_user_id: CurrentUserDep, db: DbDep):
    ReminderSettingsService(db).delete_rule(current_user_id, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------- Templates -----------------
@router.get("/templates", response_model=list[schemas.ReminderTemplateOut])
def list_templates(current_user_id: CurrentUserDep, db: DbDep):
    return ReminderSettingsService(db).list_templates(current_user_id)


@router.post("/templates/preview", response_model=schemas.ReminderPreviewOut)
@limiter.limit(RATE_LIMITS["preview"])
def preview_template(
    request: Request,
    data: schemas.ReminderPreviewRequest,
    current_user_id: CurrentUserDep,
    db: DbDep,
):
    content = ReminderSettingsService(db).preview(current_user_id, data)
    return schemas.ReminderPreviewOut(
        subject=content.subject,
        text=content.text,
        html=content.html,
        reply_to_email=content.reply_to_email,
    )


@router.put("/templates/{tone}", response_model=schemas.ReminderTemplateOut)
def upsert_template(tone: ReminderTone, data: schemas.ReminderTemplateUpsert, current_user_id: CurrentUserDep, db: DbDep):
    return ReminderSettingsService(db).upsert_template(current_user_id, tone, data)


@router.delete("/templates/{tone}", response_model=schemas.ReminderTemplateOut)
def reset_template(tone: ReminderTone, current_user_id: CurrentUserDep, db: DbDep):
    """Drop the override so the built-in default applies again."""
    return ReminderSettingsService(db).reset_template(current_user_id, tone)


# ---------------- History -----------------
@router.get("/history", response_model=list[schemas.ReminderHistoryOut])
def reminder_history(
    current_user_id: CurrentUserDep,
    db: DbDep,
    limit: int = Query(default=100, ge=1, le=500),
):
    return ReminderSettingsService(db).history(current_user_id, limit=limit)
