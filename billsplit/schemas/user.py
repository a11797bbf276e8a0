from billsplit.schemas.base import CamelModel

class UserOut(CamelModel):
    id: int
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
