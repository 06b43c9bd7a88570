"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Models with a field named "date" cannot spell the type inside the class body.
OptionalDate = date | None


# ============================================================================
# Common schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    reason_code: int | None = None
    category: str | None = None
    metadata: dict[str, Any] | None = None


class MessageResponse(BaseModel):
    """Schema for a plain acknowledgement."""

    message: str


# ============================================================================
# Auth and user schemas
# ============================================================================


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: str
    password: str


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    email: str
    name: str
    role: str
    banned: bool
    ban_reason: str | None = None
    ban_expires_at: datetime | None = None
    created_at: datetime


class TokenResponse(BaseModel):
    """Schema for an issued access token."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class FarmAssignment(BaseModel):
    """Schema for a user's role on one farm."""

    farm_id: UUID
    farm_name: str
    role: str


class UserDetailResponse(UserResponse):
    """Schema for a user with farm assignments."""

    farms: list[FarmAssignment] = Field(default_factory=list)


class UserListResponse(BaseModel):
    """Schema for listing users."""

    items: list[UserResponse]
    total: int
    page: int
    page_size: int


class UserCreate(BaseModel):
    """Schema for admin user creation."""

    email: str
    password: str
    name: str
    role: str = "user"


class SetPasswordRequest(BaseModel):
    new_password: str


class BanRequest(BaseModel):
    reason: str | None = None
    expires_at: datetime | None = None


class RoleUpdate(BaseModel):
    role: str


# ============================================================================
# Farm schemas
# ============================================================================


class FarmCreate(BaseModel):
    """Schema for creating a farm."""

    name: str = Field(min_length=1, max_length=100)
    location: str = Field(default="", max_length=200)
    farm_type: str = "mixed"
    district_id: UUID | None = None


class FarmResponse(BaseModel):
    """Schema for farm response."""

    model_config = ConfigDict(from_attributes=True)

    farm_id: UUID
    name: str
    location: str
    farm_type: str
    district_id: UUID | None = None
    created_at: datetime
    role: str | None = None


class MemberCreate(BaseModel):
    user_id: UUID
    role: str


class MemberResponse(BaseModel):
    """Schema for a farm member."""

    membership_id: UUID
    user_id: UUID
    name: str
    email: str
    role: str


# ============================================================================
# Worker and geofence schemas
# ============================================================================


class WorkerCreate(BaseModel):
    """Schema for creating a worker profile."""

    user_id: UUID
    phone: str = Field(min_length=1, max_length=20)
    emergency_contact_name: str | None = Field(default=None, max_length=100)
    emergency_contact_phone: str | None = Field(default=None, max_length=20)
    employment_start_date: date | None = None
    wage_rate_amount: Decimal = Field(gt=0)
    wage_rate_type: str
    wage_currency: str = Field(default="USD", min_length=3, max_length=3)
    permissions: list[str] = Field(default_factory=list)
    structure_ids: list[UUID] = Field(default_factory=list)


class WorkerUpdate(BaseModel):
    """Schema for a partial worker profile update."""

    phone: str | None = Field(default=None, max_length=20)
    emergency_contact_name: str | None = Field(default=None, max_length=100)
    emergency_contact_phone: str | None = Field(default=None, max_length=20)
    employment_status: str | None = None
    wage_rate_amount: Decimal | None = Field(default=None, gt=0)
    wage_rate_type: str | None = None
    wage_currency: str | None = Field(default=None, min_length=3, max_length=3)
    permissions: list[str] | None = None
    profile_photo_url: str | None = None


class WorkerResponse(BaseModel):
    """Schema for worker profile response."""

    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    user_id: UUID
    farm_id: UUID
    phone: str
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    employment_status: str
    employment_start_date: date
    employment_end_date: date | None = None
    wage_rate_amount: Decimal
    wage_rate_type: str
    wage_currency: str
    permissions: list[str]
    structure_ids: list[str]
    profile_photo_url: str | None = None
    name: str | None = None


class Coordinate(BaseModel):
    lat: float
    lng: float


class GeofenceSave(BaseModel):
    """Schema for creating or replacing a farm geofence."""

    geofence_type: str
    center_lat: float | None = None
    center_lng: float | None = None
    radius_meters: float | None = None
    vertices: list[Coordinate] = Field(default_factory=list, max_length=20)
    tolerance_meters: float = Field(default=100.0, ge=0)


class GeofenceResponse(BaseModel):
    """Schema for geofence response."""

    model_config = ConfigDict(from_attributes=True)

    geofence_id: UUID
    farm_id: UUID
    geofence_type: str
    center_lat: float | None = None
    center_lng: float | None = None
    radius_meters: float | None = None
    vertices: list[Coordinate] | None = None
    tolerance_meters: float


# ============================================================================
# Attendance schemas
# ============================================================================


class CheckInRequest(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None


class CheckOutRequest(BaseModel):
    check_in_id: UUID
    latitude: float
    longitude: float
    accuracy: float | None = None


class CheckInResponse(BaseModel):
    """Schema for attendance record response."""

    model_config = ConfigDict(from_attributes=True)

    check_in_id: UUID
    worker_id: UUID
    farm_id: UUID
    check_in_time: datetime
    check_in_lat: float
    check_in_lng: float
    check_in_accuracy: float | None = None
    verification_status: str
    check_out_time: datetime | None = None
    check_out_lat: float | None = None
    check_out_lng: float | None = None
    hours_worked: Decimal | None = None
    sync_status: str
    worker_name: str | None = None


class OpenCheckInResponse(BaseModel):
    """Schema for the caller's open check-in."""

    check_in_id: UUID
    check_in_time: datetime
    check_out_time: datetime | None = None
    hours_worked: Decimal
    verification_status: str


class OfflineCheckIn(BaseModel):
    """Schema for a check-in recorded while offline."""

    local_id: str
    check_in_time: datetime
    check_in_lat: float
    check_in_lng: float
    check_in_accuracy: float | None = None
    check_out_time: datetime | None = None
    check_out_lat: float | None = None
    check_out_lng: float | None = None


class SyncRequest(BaseModel):
    items: list[OfflineCheckIn]


class SyncResultResponse(BaseModel):
    local_id: str
    success: bool
    server_id: UUID | None = None
    error: str | None = None


class SyncResponse(BaseModel):
    results: list[SyncResultResponse]
    synced: int
    failed: int


# ============================================================================
# Task schemas
# ============================================================================


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    frequency: str = "once"


class TaskResponse(BaseModel):
    """Schema for task response."""

    model_config = ConfigDict(from_attributes=True)

    task_id: UUID
    farm_id: UUID
    title: str
    description: str | None = None
    frequency: str
    created_at: datetime


class AssignmentCreate(BaseModel):
    """Schema for assigning a task to a worker."""

    task_id: UUID
    worker_id: UUID
    due_date: datetime | None = None
    priority: str = "medium"
    requires_photo: bool = False
    requires_approval: bool = False
    notes: str | None = Field(default=None, max_length=500)


class AssignmentResponse(BaseModel):
    """Schema for task assignment response."""

    model_config = ConfigDict(from_attributes=True)

    assignment_id: UUID
    task_id: UUID
    worker_id: UUID
    assigned_by: UUID
    farm_id: UUID
    due_date: datetime | None = None
    priority: str
    status: str
    requires_photo: bool
    requires_approval: bool
    notes: str | None = None
    completed_at: datetime | None = None
    completion_notes: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime


class PhotoUpload(BaseModel):
    photo_url: str
    captured_lat: float | None = None
    captured_lng: float | None = None
    captured_at: datetime | None = None


class CompleteRequest(BaseModel):
    completion_notes: str | None = Field(default=None, max_length=500)
    photo: PhotoUpload | None = None


class ApprovalRequest(BaseModel):
    """Schema for approving or rejecting completed work."""

    approved: bool
    rejection_reason: str | None = Field(default=None, max_length=500)


class TaskMetricsResponse(BaseModel):
    total: int
    completed: int
    pending: int
    overdue: int
    completion_rate: float


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollPeriodCreate(BaseModel):
    period_type: str
    start_date: date
    end_date: date


class PayrollPeriodResponse(BaseModel):
    """Schema for payroll period response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_period_id: UUID
    farm_id: UUID
    period_type: str
    start_date: date
    end_date: date
    status: str
    created_at: datetime


class WorkerPayrollResponse(BaseModel):
    """Schema for one worker's wages in a period."""

    model_config = ConfigDict(from_attributes=True)

    worker_id: UUID
    worker_name: str
    total_hours: Decimal
    days_worked: int
    wage_rate: Decimal
    wage_type: str
    gross_wages: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal


class PayrollSummaryResponse(BaseModel):
    """Schema for a payroll period summary."""

    farm_name: str
    period: PayrollPeriodResponse
    workers: list[WorkerPayrollResponse]
    total_gross: Decimal
    total_paid: Decimal
    total_outstanding: Decimal


class PaymentCreate(BaseModel):
    """Schema for recording a wage payment."""

    worker_id: UUID
    payroll_period_id: UUID
    amount: Decimal = Field(gt=0)
    payment_date: date | None = None
    payment_method: str
    notes: str | None = Field(default=None, max_length=500)


class PaymentResponse(BaseModel):
    """Schema for wage payment response."""

    model_config = ConfigDict(from_attributes=True)

    payment_id: UUID
    worker_id: UUID
    payroll_period_id: UUID
    farm_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: str
    notes: str | None = None
    created_at: datetime


# ============================================================================
# Batch schemas
# ============================================================================


class BatchCreate(BaseModel):
    livestock_type: str
    species: str
    initial_quantity: int
    acquisition_date: date
    cost_per_unit: Decimal | None = None


class BatchUpdate(BaseModel):
    species: str | None = None
    acquisition_date: OptionalDate = None
    cost_per_unit: Decimal | None = None
    status: str | None = None


class BatchResponse(BaseModel):
    """Schema for batch response."""

    model_config = ConfigDict(from_attributes=True)

    batch_id: UUID
    farm_id: UUID
    livestock_type: str
    species: str
    initial_quantity: int
    current_quantity: int
    acquisition_date: date
    cost_per_unit: Decimal | None = None
    total_cost: Decimal | None = None
    status: str
    created_at: datetime


class BatchHealthResponse(BatchResponse):
    """Schema for a batch with its mortality classification."""

    total_deaths: int
    mortality_rate: float
    health_status: str | None = None


class MortalityCreate(BaseModel):
    quantity: int
    date: date
    cause: str = "unknown"
    notes: str | None = Field(default=None, max_length=500)


class MortalityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mortality_record_id: UUID
    batch_id: UUID
    quantity: int
    date: date
    cause: str
    notes: str | None = None
    created_at: datetime


# ============================================================================
# Sales and expense schemas
# ============================================================================


class SaleCreate(BaseModel):
    livestock_type: str
    quantity: int
    unit_price: Decimal
    date: date
    batch_id: UUID | None = None
    customer_name: str | None = Field(default=None, max_length=200)


class SaleResponse(BaseModel):
    """Schema for sale response."""

    model_config = ConfigDict(from_attributes=True)

    sale_id: UUID
    farm_id: UUID
    batch_id: UUID | None = None
    livestock_type: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    date: date
    customer_name: str | None = None
    created_at: datetime


class SaleListResponse(BaseModel):
    items: list[SaleResponse]
    total: int
    page: int
    page_size: int


class ExpenseCreate(BaseModel):
    category: str
    amount: Decimal
    date: date
    description: str = Field(max_length=500)
    batch_id: UUID | None = None


class ExpenseResponse(BaseModel):
    """Schema for expense response."""

    model_config = ConfigDict(from_attributes=True)

    expense_id: UUID
    farm_id: UUID
    batch_id: UUID | None = None
    category: str
    amount: Decimal
    date: date
    description: str
    created_at: datetime


class ExpenseListResponse(BaseModel):
    items: list[ExpenseResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Egg schemas
# ============================================================================


class EggRecordCreate(BaseModel):
    batch_id: UUID
    date: OptionalDate = None
    quantity_collected: int
    quantity_broken: int = 0
    quantity_sold: int = 0


class EggRecordUpdate(BaseModel):
    date: OptionalDate = None
    quantity_collected: int | None = None
    quantity_broken: int | None = None
    quantity_sold: int | None = None


class EggRecordResponse(BaseModel):
    """Schema for egg record response."""

    model_config = ConfigDict(from_attributes=True)

    egg_record_id: UUID
    batch_id: UUID
    date: date
    quantity_collected: int
    quantity_broken: int
    quantity_sold: int
    created_at: datetime


class EggRecordListResponse(BaseModel):
    items: list[EggRecordResponse]
    total: int
    page: int
    page_size: int


class EggSummaryResponse(BaseModel):
    """Schema for a batch's egg totals."""

    batch_id: UUID
    total_collected: int
    total_broken: int
    total_sold: int
    current_inventory: int
    record_count: int
    flock_size: int
    laying_percentage: float


# ============================================================================
# Feed schemas
# ============================================================================


class FeedRecordCreate(BaseModel):
    batch_id: UUID
    feed_type: str
    quantity_kg: Decimal
    cost: Decimal = Decimal("0")
    date: OptionalDate = None
    inventory_id: UUID | None = None
    notes: str | None = None


class FeedRecordUpdate(BaseModel):
    feed_type: str | None = None
    quantity_kg: Decimal | None = None
    cost: Decimal | None = None
    date: OptionalDate = None
    notes: str | None = None


class FeedRecordResponse(BaseModel):
    """Schema for feed record response."""

    model_config = ConfigDict(from_attributes=True)

    feed_record_id: UUID
    batch_id: UUID
    feed_type: str
    quantity_kg: Decimal
    cost: Decimal
    date: date
    inventory_id: UUID | None = None
    notes: str | None = None
    created_at: datetime


class FeedRecordListResponse(BaseModel):
    items: list[FeedRecordResponse]
    total: int
    page: int
    page_size: int


class FeedTypeTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quantity_kg: Decimal
    cost: Decimal


class FeedSummaryResponse(BaseModel):
    """Schema for a farm's feed totals."""

    model_config = ConfigDict(from_attributes=True)

    total_quantity_kg: Decimal
    total_cost: Decimal
    by_type: dict[str, FeedTypeTotalsResponse]
    record_count: int


class InventoryCreate(BaseModel):
    feed_type: str
    quantity_kg: Decimal = Field(ge=0)
    min_threshold_kg: Decimal = Field(default=Decimal("0"), ge=0)


class InventoryUpdate(BaseModel):
    quantity_kg: Decimal | None = Field(default=None, ge=0)
    min_threshold_kg: Decimal | None = Field(default=None, ge=0)


class InventoryResponse(BaseModel):
    """Schema for feed inventory response."""

    model_config = ConfigDict(from_attributes=True)

    inventory_id: UUID
    farm_id: UUID
    feed_type: str
    quantity_kg: Decimal
    min_threshold_kg: Decimal
    low_stock: bool = False


# ============================================================================
# Settings schemas
# ============================================================================


class SettingsResponse(BaseModel):
    """Schema for user settings."""

    model_config = ConfigDict(from_attributes=True)

    currency_code: str
    currency_symbol: str
    currency_decimals: int
    currency_symbol_position: str
    thousand_separator: str
    decimal_separator: str
    date_format: str
    time_format: str
    first_day_of_week: int
    weight_unit: str
    area_unit: str
    temperature_unit: str
    language: str
    theme: str
    low_stock_threshold_percent: int
    mortality_alert_percent: int
    mortality_alert_quantity: int
    notifications: dict[str, bool]
    default_payment_terms_days: int
    fiscal_year_start_month: int


class SettingsUpdate(BaseModel):
    """Schema for a partial settings update; values are checked by the service."""

    currency_code: str | None = None
    currency_symbol: str | None = None
    currency_decimals: int | None = None
    currency_symbol_position: str | None = None
    thousand_separator: str | None = None
    decimal_separator: str | None = None
    date_format: str | None = None
    time_format: str | None = None
    first_day_of_week: int | None = None
    weight_unit: str | None = None
    area_unit: str | None = None
    temperature_unit: str | None = None
    language: str | None = None
    theme: str | None = None
    low_stock_threshold_percent: int | None = None
    mortality_alert_percent: int | None = None
    mortality_alert_quantity: int | None = None
    notifications: dict[str, bool] | None = None
    default_payment_terms_days: int | None = None
    fiscal_year_start_month: int | None = None


# ============================================================================
# Notification and audit schemas
# ============================================================================


class NotificationResponse(BaseModel):
    """Schema for notification response."""

    model_config = ConfigDict(from_attributes=True)

    notification_id: UUID
    farm_id: UUID | None = None
    type: str
    title: str
    message: str
    read: bool
    action_url: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="extra")
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    page: int
    page_size: int


class MarkAllReadResponse(BaseModel):
    updated: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    audit_log_id: UUID
    user_id: UUID | None = None
    action: str
    entity_type: str
    entity_id: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Extension administration schemas
# ============================================================================


class RegionCreate(BaseModel):
    country_id: UUID
    parent_id: UUID | None = None
    level: int = Field(ge=1, le=2)
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")


class RegionUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")


class RegionResponse(BaseModel):
    """Schema for region response."""

    model_config = ConfigDict(from_attributes=True)

    region_id: UUID
    country_id: UUID
    parent_id: UUID | None = None
    level: int
    name: str
    slug: str
    is_active: bool


class RegionNodeResponse(BaseModel):
    """Schema for a region in the tree with its districts."""

    region: RegionResponse
    farm_count: int
    agent_count: int
    children: list["RegionNodeResponse"] = Field(default_factory=list)


class CountryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    country_id: UUID
    code: str
    name: str


class CountryNodeResponse(BaseModel):
    country: CountryResponse
    regions: list[RegionNodeResponse]


class DistrictAssignmentCreate(BaseModel):
    user_id: UUID
    district_id: UUID
    is_supervisor: bool = False


class UserDistrictResponse(BaseModel):
    """Schema for a user's district assignment."""

    model_config = ConfigDict(from_attributes=True)

    user_district_id: UUID
    user_id: UUID
    district_id: UUID
    is_supervisor: bool
    assigned_at: datetime


class AssignedDistrict(BaseModel):
    district_id: UUID
    district_name: str
    is_supervisor: bool
    assigned_at: datetime


class UserDistrictsResponse(BaseModel):
    user_id: UUID
    user_name: str
    user_email: str
    districts: list[AssignedDistrict]


class DistrictAssignmentsResponse(BaseModel):
    """Schema for every user's district assignments."""

    assignments: list[UserDistrictsResponse]
    districts: list[RegionResponse]


class ThresholdUpsert(BaseModel):
    species: str
    amber_threshold: float = Field(ge=0, le=100)
    red_threshold: float = Field(ge=0, le=100)
    region_id: UUID | None = None


class ThresholdResponse(BaseModel):
    """Schema for a stored species threshold."""

    model_config = ConfigDict(from_attributes=True)

    threshold_id: UUID
    species: str
    region_id: UUID | None = None
    amber_threshold: Decimal
    red_threshold: Decimal


class ThresholdOverrideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    threshold_id: UUID
    region_id: UUID | None = None
    region_name: str
    amber_threshold: Decimal
    red_threshold: Decimal


class SpeciesThresholdsResponse(BaseModel):
    """Schema for a species' default thresholds and overrides."""

    model_config = ConfigDict(from_attributes=True)

    species: str
    amber_threshold: float
    red_threshold: float
    overrides: list[ThresholdOverrideResponse]


# ============================================================================
# Dashboard schemas
# ============================================================================


class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    alert_type: str
    severity: str
    message: str
    farm_id: UUID
    batch_id: UUID | None = None
    inventory_id: UUID | None = None


class TransactionResponse(BaseModel):
    id: UUID
    type: str
    description: str | None = None
    amount: Decimal
    date: date


class DashboardResponse(BaseModel):
    """Schema for the farm dashboard."""

    model_config = ConfigDict(from_attributes=True)

    farm_ids: list[UUID]
    inventory: dict[str, int]
    active_batches: int
    monthly_revenue: Decimal
    monthly_expenses: Decimal
    monthly_profit: Decimal
    revenue_change: float
    expenses_change: float
    eggs_this_month: int
    laying_percentage: float
    alerts: list[AlertResponse]
    active_workers: int
    checked_in_today: int
    pending_approvals: int
    recent_transactions: list[TransactionResponse]
