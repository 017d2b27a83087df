from fastapi import APIRouter, Depends, Query

from servicecrm.api.deps import Session, get_access_policy, get_session
from servicecrm.api.schemas import AccessCheckResponse, NavigationResponse, NavItemModel
from servicecrm.domain.policy import AccessPolicy

router = APIRouter()


@router.get("/navigation", response_model=NavigationResponse)
def get_navigation(
    session: Session = Depends(get_session),
    policy: AccessPolicy = Depends(get_access_policy),
) -> NavigationResponse:
    """Menu entries for the caller's role, in menu order."""
    items = [
        NavItemModel(name=name, href=policy.nav_path(name))
        for name in policy.visible_nav_items(session.role)
    ]
    return NavigationResponse(role=session.role.value, items=items)


@router.get("/access/check", response_model=AccessCheckResponse)
def check_access(
    path: str = Query(..., min_length=1),
    session: Session = Depends(get_session),
    policy: AccessPolicy = Depends(get_access_policy),
) -> AccessCheckResponse:
    return AccessCheckResponse(path=path, allowed=policy.is_path_allowed(session.role, path))
