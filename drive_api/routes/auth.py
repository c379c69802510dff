from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from drive_api.config import Settings
from drive_api.core.deps import get_app_settings, get_current_owner
from drive_api.core.errors import AuthError
from drive_api.core.security import authenticate_owner, create_access_token

router = APIRouter(
    prefix="/api/auth",
    tags=["Auth"]
)


@router.post("/login")
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    settings: Settings = Depends(get_app_settings),
):
    if not authenticate_owner(settings, form_data.username, form_data.password):
        raise AuthError("Invalid credentials")

    access_token = create_access_token(settings, data={"sub": settings.OWNER_EMAIL})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me")
async def read_me(owner: str = Depends(get_current_owner)):
    return {"email": owner}
