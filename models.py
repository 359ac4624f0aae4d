from pydantic import BaseModel, ConfigDict, StrictBool


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    public_ip: str
    machine_id: str


class AuthorizationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    license_key: str
    public_ip: str
    machine_id: str

    @classmethod
    def for_identity(cls, license_key: str, identity: Identity) -> "AuthorizationRequest":
        return cls(
            license_key=license_key,
            public_ip=identity.public_ip,
            machine_id=identity.machine_id,
        )


class AuthorizationVerdict(BaseModel):
    allowed: StrictBool
    message: str = ""


class ActionEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    description: str = ""
