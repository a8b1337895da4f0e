from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

USER_TYPE_ADMIN = "admin"
USER_TYPE_USER = "user"
USER_TYPES = (USER_TYPE_ADMIN, USER_TYPE_USER)


def utc_now():
    return datetime.now(timezone.utc)


def as_utc(value):
    """
    pymongo hands back naive datetimes that are already UTC. Migrated
    documents may hold ISO strings instead; anything unreadable is None.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso(value):
    value = as_utc(value)
    return value.isoformat() if value else None


@dataclass
class Account:
    id: str
    email: str
    firstName: str = ""
    lastName: str = ""
    middleInitial: str = ""
    username: str = ""
    age: int = 0
    houseNumber: str = ""
    street: str = ""
    barangay: str = ""
    cityMunicipality: str = ""
    province: str = ""
    userType: str = USER_TYPE_USER
    status: str = STATUS_PENDING
    surveyCompleted: bool = False
    birthDate: Optional[str] = None
    contactNumber: Optional[str] = None
    name: Optional[str] = None  # legacy free-form name on older documents
    createdAt: datetime = field(default_factory=utc_now)
    updatedAt: Optional[datetime] = None

    @property
    def is_admin(self):
        return self.userType == USER_TYPE_ADMIN

    @classmethod
    def from_document(cls, doc):
        known = {f.name for f in fields(cls)} - {"id", "createdAt", "updatedAt"}
        data = {k: v for k, v in doc.items() if k in known and v is not None}
        data.setdefault("email", "")
        if not data.get("status"):
            data["status"] = STATUS_PENDING
        if not data.get("userType"):
            data["userType"] = USER_TYPE_USER
        return cls(
            id=str(doc["_id"]),
            createdAt=as_utc(doc.get("createdAt")) or utc_now(),
            updatedAt=as_utc(doc.get("updatedAt")),
            **data,
        )

    def to_document(self):
        doc = {"_id": self.id}
        for f in fields(self):
            if f.name == "id":
                continue
            value = getattr(self, f.name)
            if value is None and f.name in ("birthDate", "contactNumber", "name", "updatedAt"):
                continue
            doc[f.name] = value
        return doc

    def to_public(self):
        out = self.to_document()
        out["id"] = out.pop("_id")
        out["createdAt"] = iso(self.createdAt)
        if self.updatedAt:
            out["updatedAt"] = iso(self.updatedAt)
        return out


# ---------- survey ----------

SURVEY_FIELDS = (
    # profile
    "lastName", "firstName", "middleName", "suffix",
    "street", "barangay", "province", "cityMunicipality",
    "sex", "age", "birthday", "emailAddress", "contactNumber", "facebookAccount",
    # demographic characteristics
    "civilStatus", "youthClassification", "youthAgeGroup",
    "educationalBackground", "workStatus", "gender",
    "registeredSKVoter", "registeredNationalVoter",
    "attendedKKAssembly", "timesAttendedKKAssembly", "whyNotAttended",
    "votedLastElection", "preferredSports",
)

REQUIRED_SURVEY_FIELDS = {
    "lastName": "Last name is required",
    "firstName": "First name is required",
    "sex": "Sex is required",
    "age": "Age is required",
    "birthday": "Birthday is required",
    "emailAddress": "Email is required",
    "street": "Street is required",
    "barangay": "Barangay is required",
    "province": "Province is required",
    "cityMunicipality": "City/Municipality is required",
    "civilStatus": "Civil status is required",
    "youthClassification": "Youth classification is required",
    "youthAgeGroup": "Youth age group is required",
    "educationalBackground": "Educational background is required",
    "workStatus": "Work status is required",
    "gender": "Gender is required",
}

YES_NO = ("Yes", "No")

SURVEY_CHOICES = {
    "sex": ("Male", "Female"),
    "civilStatus": (
        "Single", "Separated", "Married", "Annulled", "Divorced", "Widowed", "Live-in",
    ),
    "youthClassification": (
        "In School Youth",
        "Person with Disability",
        "Out of School Youth",
        "Children in Conflict with Law",
        "Working Youth",
        "Indigenous Youth",
        "Youth with Specific Needs",
    ),
    "youthAgeGroup": (
        "Child Youth (15-17 yrs.old)",
        "Core Youth (18-24 yrs.old)",
        "Young Adult (25-30 yrs.old)",
    ),
    "educationalBackground": (
        "Elementary Level", "Elementary Graduate",
        "High School Level", "High School Graduate",
        "Vocational Graduate",
        "College Level", "College Graduate",
        "Masters Level", "Masters Graduate",
        "Doctorate Level", "Doctorate Graduate",
    ),
    "workStatus": (
        "Employed",
        "Unemployed",
        "Self-employed",
        "Currently looking for a job",
        "Not interested in looking for a job",
    ),
    "gender": ("Male", "Female", "LGBTQIA+", "Others"),
    "registeredSKVoter": YES_NO,
    "registeredNationalVoter": YES_NO,
    "attendedKKAssembly": YES_NO,
    "timesAttendedKKAssembly": ("1-2 times", "3-4 times", "5 and above"),
    "whyNotAttended": ("There was no KK Assembly", "Not interested to attend"),
    "votedLastElection": YES_NO,
}

NOT_SPECIFIED = "Not Specified"


@dataclass
class Survey:
    userId: str
    answers: dict = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid4()))
    createdAt: datetime = field(default_factory=utc_now)
    updatedAt: datetime = field(default_factory=utc_now)

    def get(self, name):
        return self.answers.get(name, "")

    @classmethod
    def from_document(cls, doc):
        answers = {}
        for name in SURVEY_FIELDS:
            value = doc.get(name)
            answers[name] = "" if value is None else str(value)
        return cls(
            id=str(doc["_id"]),
            userId=doc.get("userId", ""),
            answers=answers,
            createdAt=as_utc(doc.get("createdAt")) or utc_now(),
            updatedAt=as_utc(doc.get("updatedAt")) or utc_now(),
        )

    def to_document(self):
        doc = {"_id": self.id, "userId": self.userId}
        doc.update({name: self.answers.get(name, "") for name in SURVEY_FIELDS})
        doc["createdAt"] = self.createdAt
        doc["updatedAt"] = self.updatedAt
        return doc

    def to_public(self):
        out = self.to_document()
        out["id"] = out.pop("_id")
        out["createdAt"] = iso(self.createdAt)
        out["updatedAt"] = iso(self.updatedAt)
        return out
