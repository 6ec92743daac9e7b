# ns_guard/models.py
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Operation = Literal["CREATE", "UPDATE", "DELETE", "CONNECT"]


class GroupVersionResource(BaseModel):
    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str = ""
    resource: str = ""

    def __str__(self) -> str:
        return f"{self.group}/{self.version}/{self.resource}"


class UserInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = ""
    uid: str = ""
    groups: List[str] = Field(default_factory=list)


class AdmissionRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str = ""
    resource: GroupVersionResource = Field(default_factory=GroupVersionResource)
    name: str = ""
    namespace: str = ""
    operation: Operation
    user_info: UserInfo = Field(default_factory=UserInfo, alias="userInfo")
    object: Optional[Dict[str, Any]] = None


class Status(BaseModel):
    message: str = ""


class AdmissionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str = ""
    allowed: bool
    status: Status = Field(default_factory=Status)


class AdmissionReview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field("admission.k8s.io/v1", alias="apiVersion")
    kind: str = "AdmissionReview"
    request: Optional[AdmissionRequest] = None
    response: Optional[AdmissionResponse] = None


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    reason: str = ""

    @staticmethod
    def allow() -> "Verdict":
        return Verdict(allowed=True)

    @staticmethod
    def deny(reason: str) -> "Verdict":
        return Verdict(allowed=False, reason=reason)
