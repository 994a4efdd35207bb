from fastapi import APIRouter

from paynudge.api.dependencies import CurrentUserDep, DbDep
from paynudge.models import schemas
from paynudge.services.account_service import AccountService

router = APIRouter()


@router.get("/", response_model=schemas.AccountSettingsOut)
def get_account(current_user_id: CurrentUserDep, db: DbDep):
    return AccountService(db).get_settings(current_user_id)


@router.put("/", response_model=schemas.AccountSettingsOut)
def update_account(data: schemas.AccountSettingsUpdate, current_user_id: CurrentUserDep, db: DbDep):
    return AccountService(db).update_settings(current_user_id, data)


@router.get("/billing", response_model=schemas.BillingStatusOut)
def billing_status(current_user_id: CurrentUserDep, db: DbDep):
    return AccountService(db).billing_status(current_user_id)
