from typing import Annotated
from fastapi import Depends
from smartpoint.modules.auth.utils import get_current_user
from smartpoint.modules.auth.models import User

user_dependency = Annotated[User, Depends(get_current_user)]
