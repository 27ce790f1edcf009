"""Entity models for tours, people, schedules and suppliers.

Every model is frozen: a change is always a new object (see `utils.shallow_merge`).
Field names are snake_case in Python and camelCase on the wire, matching the
persisted blobs.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EventType = Literal[
    "Travel", "Load-in", "Soundcheck", "Performance", "Load-out", "Day Off", "Interview"
]
EVENT_TYPES = (
    "Travel",
    "Load-in",
    "Soundcheck",
    "Performance",
    "Load-out",
    "Day Off",
    "Interview",
)

UserRole = Literal["Tour Manager", "Artist", "Production", "Crew", "Driver", "Vendor"]
USER_ROLES = ("Tour Manager", "Artist", "Production", "Crew", "Driver", "Vendor")
MANAGER_ROLE = "Tour Manager"

PermissionLevel = Literal["read", "write"]
PersonStatus = Literal["active", "pending_invitation"]
TourStatus = Literal["Active", "Upcoming", "Completed"]
ExpenseStatus = Literal["pending", "approved", "rejected"]
CampaignStatus = Literal["Sent", "Scheduled", "Draft"]
FormStatus = Literal["open", "closed"]
RFPStatus = Literal["Draft", "Sent", "Responded", "Awarded", "Declined"]

WebsiteSectionType = Literal[
    "hero", "about", "video", "tickets", "gallery", "testimonials", "cta", "header", "footer"
]
WEBSITE_SECTION_TYPES = (
    "hero",
    "about",
    "video",
    "tickets",
    "gallery",
    "testimonials",
    "cta",
    "header",
    "footer",
)

SocialPlatform = Literal["twitter", "instagram", "facebook", "youtube"]

FormFieldType = Literal[
    "text", "email", "tel", "number", "textarea", "select", "radio", "checkbox"
]
FORM_FIELD_TYPES = (
    "text",
    "email",
    "tel",
    "number",
    "textarea",
    "select",
    "radio",
    "checkbox",
)

SupplierCategory = Literal[
    "Venue", "Hotel", "Catering", "Lighting", "Sound", "Transportation", "Security"
]
SUPPLIER_CATEGORIES = (
    "Venue",
    "Hotel",
    "Catering",
    "Lighting",
    "Sound",
    "Transportation",
    "Security",
)


class Entity(BaseModel):
    """Base for every stored record."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


# --- people ------------------------------------------------------------------


class Person(Entity):
    id: str
    name: str
    email: str
    password: str | None = None
    status: PersonStatus = "pending_invitation"
    role: UserRole
    avatar_url: str = ""


# --- schedule ----------------------------------------------------------------


class EventAssignment(Entity):
    person_id: str
    permission: PermissionLevel = "read"


class Comment(Entity):
    id: str
    author_id: str
    timestamp: str
    text: str


class Task(Entity):
    id: str
    text: str
    completed: bool = False
    assigned_to: str


class ScheduleEvent(Entity):
    id: str
    date: str
    type: EventType
    title: str
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    notes: str | None = None
    assigned_to: list[EventAssignment] = Field(default_factory=list)
    comments: list[Comment] | None = None
    tasks: list[Task] | None = None


# --- financials --------------------------------------------------------------


class BudgetItem(Entity):
    id: str
    category: str
    amount: float


class Expense(Entity):
    id: str
    description: str
    amount: float
    date: str
    category: str
    submitted_by_id: str
    receipt_url: str | None = None
    status: ExpenseStatus = "pending"
    rejection_reason: str | None = None


class Financials(Entity):
    budget: list[BudgetItem] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)


# --- venues ------------------------------------------------------------------


class MapPin(Entity):
    id: str
    x: float
    y: float
    label: str


class Venue(Entity):
    id: str
    name: str
    location: str
    map_image_url: str = ""
    floor_plan_url: str | None = None
    pins: list[MapPin] = Field(default_factory=list)


# --- website -----------------------------------------------------------------


class GalleryImage(Entity):
    url: str
    caption: str | None = None


class Testimonial(Entity):
    quote: str
    author: str
    image_url: str | None = None


class SocialLink(Entity):
    platform: SocialPlatform
    url: str


class SectionContent(Entity):
    """Type-specific payload of a website section; unused keys stay unset."""

    headline: str | None = None
    subheadline: str | None = None
    image_url: str | None = None
    logo_url: str | None = None
    title: str | None = None
    body: str | None = None
    video_url: str | None = None
    ticket_url: str | None = None
    button_text: str | None = None
    images: list[GalleryImage] | None = None
    testimonials: list[Testimonial] | None = None
    cta_title: str | None = None
    cta_body: str | None = None
    cta_button_text: str | None = None
    cta_button_url: str | None = None
    copyright_text: str | None = None
    social_links: list[SocialLink] | None = None


class WebsiteSection(Entity):
    id: str
    type: WebsiteSectionType
    content: SectionContent = Field(default_factory=SectionContent)


# --- email campaigns ---------------------------------------------------------


class CampaignStats(Entity):
    open_rate: float = 0
    click_rate: float = 0


class EmailContent(Entity):
    headline: str | None = None
    body: str | None = None
    cta_button_text: str | None = None
    cta_button_url: str | None = None


class EmailSegmentation(Entity):
    location_ids: list[str] | None = None


class EmailCampaign(Entity):
    id: str
    name: str
    status: CampaignStatus = "Draft"
    scheduled_date: str | None = None
    stats: CampaignStats | None = None
    subject: str | None = None
    from_name: str | None = None
    content: EmailContent | None = None
    segmentation: EmailSegmentation | None = None


# --- registration ------------------------------------------------------------


class FormField(Entity):
    id: str
    type: FormFieldType
    label: str
    placeholder: str | None = None
    required: bool = False
    options: list[str] | None = None


class RegistrationForm(Entity):
    id: str
    name: str
    status: FormStatus = "open"
    fields: list[FormField] = Field(default_factory=list)


class RegistrationResponse(Entity):
    field_id: str
    value: str | list[str]


class Attendee(Entity):
    id: str
    form_id: str
    registration_date: str
    responses: list[RegistrationResponse] = Field(default_factory=list)


class Registration(Entity):
    forms: list[RegistrationForm] = Field(default_factory=list)
    attendees: list[Attendee] = Field(default_factory=list)


# --- sourcing ----------------------------------------------------------------


class Supplier(Entity):
    id: str
    name: str
    category: SupplierCategory
    location: str
    contact_email: str
    rating: float


class RFP(Entity):
    id: str
    title: str
    sent_date: str
    due_date: str
    status: RFPStatus = "Draft"
    details: str = ""


class Proposal(Entity):
    id: str
    rfp_id: str
    supplier_id: str
    received_date: str
    total_cost: float
    notes: str = ""
    file_url: str | None = None


class RoomBlock(Entity):
    id: str
    hotel_supplier_id: str
    check_in_date: str
    check_out_date: str
    room_count: int
    negotiated_rate: float
    confirmation_code: str | None = None


# --- tour --------------------------------------------------------------------


class Tour(Entity):
    """Aggregate root for nearly everything except people and suppliers."""

    id: str
    artist_name: str
    tour_name: str
    status: TourStatus = "Upcoming"
    start_date: str
    end_date: str
    image_url: str = ""
    financials: Financials | None = None
    venues: list[Venue] | None = None
    website: list[WebsiteSection] | None = None
    is_website_deployed: bool | None = None
    campaigns: list[EmailCampaign] | None = None
    registration: Registration | None = None
    rfps: list[RFP] | None = None
    proposals: list[Proposal] | None = None
    room_blocks: list[RoomBlock] | None = None


# --- rider import ------------------------------------------------------------


class SuggestedTask(Entity):
    text: str
    assigned_to: str


class SuggestedBudgetItem(Entity):
    category: str
    amount: float


class RiderParseResult(Entity):
    """Structured suggestions returned by the rider parsing service."""

    tasks: list[SuggestedTask] = Field(default_factory=list)
    budget_items: list[SuggestedBudgetItem] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tasks and not self.budget_items


# --- store snapshot ----------------------------------------------------------


class StoreState(Entity):
    """
    One immutable snapshot of every collection in the entity store.

    Attributes:
        tours (list[Tour]): All tours, in creation order.
        people (list[Person]): Process-wide people.
        schedule (dict[str, list[ScheduleEvent]]): Events keyed by tour id.
        suppliers (list[Supplier]): Process-wide supplier directory.
        current_user (Person or None): Logged-in person (session state).
        selected_tour (Tour or None): Snapshot of the selected tour (session state).
    """

    tours: list[Tour] = Field(default_factory=list)
    people: list[Person] = Field(default_factory=list)
    schedule: dict[str, list[ScheduleEvent]] = Field(default_factory=dict)
    suppliers: list[Supplier] = Field(default_factory=list)
    current_user: Person | None = None
    selected_tour: Tour | None = None
