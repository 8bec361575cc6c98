"""
SQLAlchemy database models for the pool construction CRM.

Defines all database tables and relationships for companies, users,
customers, projects, employees, inventory, subcontractors, project expenses,
milestones, expense templates, goals, calendar events, documents, and SMS
messages.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Date, Time, Text, Numeric,
    ForeignKey, UniqueConstraint, Index, Enum, Uuid, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


def _enum(enum_cls, name):
    """Enum column type that stores the member values, not their names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class UserRole(str, enum.Enum):
    """User roles within a company."""
    ADMIN = "admin"
    USER = "user"


class SubscriptionStatus(str, enum.Enum):
    """Billing subscription status values, as reported by the payment provider."""
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    TRIALING = "trialing"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"


class PipelineStatus(str, enum.Enum):
    """Customer sales pipeline status values."""
    LEAD = "lead"
    CONTACTED = "contacted"
    QUOTED = "quoted"
    SIGNED = "signed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    LOST = "lost"
    ON_HOLD = "on_hold"


class ProjectStatus(str, enum.Enum):
    """Project status values."""
    CONTACTED = "contacted"
    LEAD = "lead"
    PROPOSAL_SENT = "proposal_sent"
    PROPOSAL_SIGNED = "proposal_signed"
    CONTRACT_SENT = "contract_sent"
    SOLD = "sold"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectType(str, enum.Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    HOA = "HOA"


class PoolOrSpa(str, enum.Enum):
    POOL = "pool"
    SPA = "spa"
    POOL_AND_SPA = "pool & spa"


class InventoryType(str, enum.Enum):
    MATERIAL = "material"
    EQUIPMENT = "equipment"


class DocumentType(str, enum.Enum):
    CONTRACT = "contract"
    PROPOSAL = "proposal"
    CHANGE_ORDER = "change_order"
    OTHER = "other"


class EntityType(str, enum.Enum):
    """Record types that documents can be attached to."""
    CUSTOMERS = "customers"
    PROJECTS = "projects"
    INVENTORY = "inventory"
    SUBCONTRACTORS = "subcontractors"
    EMPLOYEES = "employees"


class SignatureStatus(str, enum.Enum):
    """Electronic signature status values."""
    SENT = "sent"
    DELIVERED = "delivered"
    SIGNED = "signed"
    COMPLETED = "completed"
    DECLINED = "declined"
    VOIDED = "voided"


class MilestoneType(str, enum.Enum):
    """Contract milestone categories."""
    INITIAL_FEE = "initial_fee"
    SUBCONTRACTOR = "subcontractor"
    EQUIPMENT = "equipment"
    MATERIALS = "materials"
    EQUIPMENT_MATERIALS = "equipment_materials"
    ADDITIONAL = "additional"
    FINAL_INSPECTION = "final_inspection"
    CHANGE_ORDER_ITEM = "change_order_item"
    CUSTOM = "custom"


class MessageDirection(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MessageStatus(str, enum.Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    RECEIVED = "received"


class Company(Base):
    """Company model; the tenant every other record is scoped to."""
    __tablename__ = "companies"

    company_id = Column(String(100), primary_key=True)
    company_name = Column(String(255), nullable=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False, default="USA")
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    next_document_number = Column(Integer, nullable=False, default=1)
    stripe_customer_id = Column(String(255), nullable=True, index=True)
    stripe_subscription_id = Column(String(255), nullable=True, index=True)
    subscription_status = Column(_enum(SubscriptionStatus, "subscription_status"), nullable=True)
    subscription_plan = Column(String(50), nullable=True, default="business")
    subscription_purchased_by_user_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    users = relationship("User", back_populates="company", cascade="all, delete-orphan")
    whitelist = relationship("WhitelistEntry", back_populates="company", cascade="all, delete-orphan")
    customers = relationship("Customer", back_populates="company", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="company", cascade="all, delete-orphan")
    employees = relationship("Employee", back_populates="company", cascade="all, delete-orphan")
    inventory = relationship("InventoryItem", back_populates="company", cascade="all, delete-orphan")
    subcontractors = relationship("Subcontractor", back_populates="company", cascade="all, delete-orphan")
    goals = relationship("Goal", back_populates="company", cascade="all, delete-orphan")
    expense_templates = relationship("ExpenseTemplate", back_populates="company", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="company", cascade="all, delete-orphan")
    documents = relationship("Document", back_populates="company", cascade="all, delete-orphan")
    sms_messages = relationship("SmsMessage", back_populates="company", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Company(company_id='{self.company_id}', name='{self.company_name}')>"


class User(Base):
    """Login account with company association."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(_enum(UserRole, "user_role"), nullable=False, default=UserRole.USER)
    active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    google_calendar_connected = Column(Boolean, nullable=False, default=False)
    google_calendar_email = Column(String(255), nullable=True)
    google_calendar_refresh_token = Column(Text, nullable=True)
    google_calendar_access_token = Column(Text, nullable=True)
    google_calendar_token_expiry = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    company = relationship("Company", back_populates="users")

    # Constraints
    __table_args__ = (
        UniqueConstraint('company_id', 'email', name='uq_user_email_per_company'),
        Index('idx_user_company_email', 'company_id', 'email'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', company_id='{self.company_id}')>"


class WhitelistEntry(Base):
    """Email addresses allowed to register under a company."""
    __tablename__ = "company_whitelist"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    added_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    registered = Column(Boolean, nullable=False, default=False)
    registered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    company = relationship("Company", back_populates="whitelist")

    __table_args__ = (
        UniqueConstraint('company_id', 'email', name='uq_whitelist_email_per_company'),
    )

    def __repr__(self):
        return f"<WhitelistEntry(email='{self.email}', company_id='{self.company_id}')>"


class Customer(Base):
    """Customer model for the sales pipeline."""
    __tablename__ = "customers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False, default="USA")
    referred_by = Column(String(255), nullable=True)
    pipeline_status = Column(_enum(PipelineStatus, "pipeline_status"), nullable=False, default=PipelineStatus.LEAD)
    notes = Column(Text, nullable=True)
    estimated_value = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    company = relationship("Company", back_populates="customers")
    projects = relationship("Project", back_populates="customer", passive_deletes=True)
    sms_messages = relationship("SmsMessage", back_populates="customer", passive_deletes=True)

    __table_args__ = (
        Index('idx_customer_company_status', 'company_id', 'pipeline_status'),
        Index('idx_customer_phone', 'phone'),
    )

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Project(Base):
    """Pool or spa construction project."""
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    address = Column(Text, nullable=True)
    project_type = Column(_enum(ProjectType, "project_type"), nullable=False)
    pool_or_spa = Column(_enum(PoolOrSpa, "pool_or_spa"), nullable=False)
    sq_feet = Column(Numeric(10, 2), nullable=True)
    status = Column(_enum(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.LEAD)
    accessories_features = Column(Text, nullable=True)
    est_value = Column(Numeric(12, 2), nullable=True)
    project_manager = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    company = relationship("Company", back_populates="projects")
    customer = relationship("Customer", back_populates="projects")
    subcontractor_hours = relationship("ProjectSubcontractorHours", back_populates="project",
                                       cascade="all, delete-orphan", passive_deletes=True)
    materials = relationship("ProjectMaterial", back_populates="project",
                             cascade="all, delete-orphan", passive_deletes=True)
    additional_expenses = relationship("ProjectAdditionalExpense", back_populates="project",
                                       cascade="all, delete-orphan", passive_deletes=True)
    milestones = relationship("ProjectMilestone", back_populates="project", order_by="ProjectMilestone.sort_order",
                              cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index('idx_project_company_status', 'company_id', 'status'),
        Index('idx_project_customer', 'customer_id'),
        Index('idx_project_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, type='{self.project_type}', company_id='{self.company_id}')>"


class Employee(Base):
    """Employee roster entry."""
    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    user_type = Column(String(50), nullable=False, default="employee")
    user_role = Column(String(100), nullable=True)
    email_address = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    color = Column(String(7), nullable=True)  # Hex color code
    last_logon = Column(DateTime(timezone=True), nullable=True)
    current = Column(Boolean, nullable=False, default=False)
    is_project_manager = Column(Boolean, nullable=False, default=False)
    is_sales_person = Column(Boolean, nullable=False, default=False)
    is_foreman = Column(Boolean, nullable=False, default=False)
    registered_time_zone = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="employees")
    events = relationship("Event", back_populates="employee", passive_deletes=True)

    __table_args__ = (
        Index('idx_employee_company_email', 'company_id', 'email_address'),
    )

    def __repr__(self):
        return f"<Employee(id={self.id}, name='{self.name}')>"


class InventoryItem(Base):
    """Materials and equipment kept in stock."""
    __tablename__ = "inventory"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(_enum(InventoryType, "inventory_type"), nullable=False, default=InventoryType.MATERIAL)
    stock = Column(Integer, nullable=False, default=0)
    unit = Column(String(20), nullable=False)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    color = Column(String(50), nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="inventory")
    project_materials = relationship("ProjectMaterial", back_populates="inventory_item",
                                     cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index('idx_inventory_company_type', 'company_id', 'type'),
    )

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, name='{self.name}')>"


class Subcontractor(Base):
    """Subcontractor with default hourly rate and insurance expiry."""
    __tablename__ = "subcontractors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    primary_contact_name = Column(String(255), nullable=True)
    primary_contact_phone = Column(String(50), nullable=True)
    primary_contact_email = Column(String(255), nullable=True)
    rate = Column(Numeric(10, 2), nullable=True)
    coi_expiration = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="subcontractors")
    project_hours = relationship("ProjectSubcontractorHours", back_populates="subcontractor",
                                 cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Subcontractor(id={self.id}, name='{self.name}')>"


class ProjectSubcontractorHours(Base):
    """Hours billed by a subcontractor against a project."""
    __tablename__ = "project_subcontractor_hours"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    subcontractor_id = Column(Uuid, ForeignKey("subcontractors.id", ondelete="CASCADE"), nullable=False)
    hours = Column(Numeric(10, 2), nullable=False)
    rate = Column(Numeric(10, 2), nullable=True)  # Falls back to the subcontractor's rate
    date_worked = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    project = relationship("Project", back_populates="subcontractor_hours")
    subcontractor = relationship("Subcontractor", back_populates="project_hours")

    __table_args__ = (
        CheckConstraint('hours >= 0', name='ck_subcontractor_hours_nonnegative'),
        CheckConstraint('rate IS NULL OR rate >= 0', name='ck_subcontractor_rate_nonnegative'),
        Index('idx_sub_hours_project', 'project_id'),
    )


class ProjectMaterial(Base):
    """Inventory consumed by a project."""
    __tablename__ = "project_materials"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    inventory_id = Column(Uuid, ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_cost = Column(Numeric(10, 2), nullable=False)
    date_used = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    project = relationship("Project", back_populates="materials")
    inventory_item = relationship("InventoryItem", back_populates="project_materials")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_material_quantity_positive'),
        CheckConstraint('unit_cost >= 0', name='ck_material_unit_cost_nonnegative'),
        Index('idx_materials_project', 'project_id'),
    )


class ProjectAdditionalExpense(Base):
    """Any other project cost (permits, rentals, fees)."""
    __tablename__ = "project_additional_expenses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    category = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    project = relationship("Project", back_populates="additional_expenses")

    __table_args__ = (
        CheckConstraint('amount >= 0', name='ck_additional_amount_nonnegative'),
        Index('idx_additional_project', 'project_id'),
    )


class ProjectMilestone(Base):
    """Customer-facing payment milestone on a project's contract."""
    __tablename__ = "project_milestones"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    milestone_type = Column(_enum(MilestoneType, "milestone_type"), nullable=False, default=MilestoneType.CUSTOM)
    description = Column(Text, nullable=True)
    cost = Column(Numeric(12, 2), nullable=False, default=0)
    markup_percent = Column(Numeric(6, 2), nullable=False, default=0)
    flat_price = Column(Numeric(12, 2), nullable=True)  # Overrides cost plus markup
    customer_price = Column(Numeric(12, 2), nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    subcontractor_hours_id = Column(Uuid, ForeignKey("project_subcontractor_hours.id", ondelete="SET NULL"),
                                    nullable=True)
    additional_expense_id = Column(Uuid, ForeignKey("project_additional_expenses.id", ondelete="SET NULL"),
                                   nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    project = relationship("Project", back_populates="milestones")

    __table_args__ = (
        CheckConstraint('cost >= 0', name='ck_milestone_cost_nonnegative'),
        Index('idx_milestone_project', 'project_id', 'sort_order'),
    )


class ExpenseTemplate(Base):
    """Reusable set of expense lines that can be copied onto a project."""
    __tablename__ = "expense_templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="expense_templates")
    subcontractor_lines = relationship("ExpenseTemplateSubcontractor", back_populates="template",
                                       cascade="all, delete-orphan", passive_deletes=True)
    material_lines = relationship("ExpenseTemplateMaterial", back_populates="template",
                                  cascade="all, delete-orphan", passive_deletes=True)
    additional_lines = relationship("ExpenseTemplateAdditional", back_populates="template",
                                    cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index('idx_expense_template_company', 'company_id'),
    )

    def __repr__(self):
        return f"<ExpenseTemplate(id={self.id}, name='{self.name}')>"


class ExpenseTemplateSubcontractor(Base):
    __tablename__ = "expense_template_subcontractors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id = Column(Uuid, ForeignKey("expense_templates.id", ondelete="CASCADE"), nullable=False)
    subcontractor_id = Column(Uuid, ForeignKey("subcontractors.id", ondelete="CASCADE"), nullable=False)
    hours = Column(Numeric(10, 2), nullable=False)
    rate = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)

    template = relationship("ExpenseTemplate", back_populates="subcontractor_lines")
    subcontractor = relationship("Subcontractor")


class ExpenseTemplateMaterial(Base):
    __tablename__ = "expense_template_materials"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id = Column(Uuid, ForeignKey("expense_templates.id", ondelete="CASCADE"), nullable=False)
    inventory_id = Column(Uuid, ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_cost = Column(Numeric(10, 2), nullable=True)  # Inventory unit price when applied
    notes = Column(Text, nullable=True)

    template = relationship("ExpenseTemplate", back_populates="material_lines")
    inventory_item = relationship("InventoryItem")


class ExpenseTemplateAdditional(Base):
    __tablename__ = "expense_template_additional"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id = Column(Uuid, ForeignKey("expense_templates.id", ondelete="CASCADE"), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    template = relationship("ExpenseTemplate", back_populates="additional_lines")


class Goal(Base):
    """Company goal tracked against a computed data point."""
    __tablename__ = "goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    goal_name = Column(String(255), nullable=False)
    data_point_type = Column(String(50), nullable=False)
    target_value = Column(Numeric(14, 2), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=True)
    target_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="goals")

    def __repr__(self):
        return f"<Goal(id={self.id}, name='{self.goal_name}')>"


class Event(Base):
    """Calendar event, optionally assigned to an employee."""
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    employee_id = Column(Uuid, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    google_event_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="events")
    employee = relationship("Employee", back_populates="events")

    __table_args__ = (
        Index('idx_event_company_date', 'company_id', 'date'),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, name='{self.name}', date={self.date})>"


class Document(Base):
    """File attached to a customer, project, inventory item, subcontractor or employee."""
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    entity_type = Column(_enum(EntityType, "entity_type"), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    document_type = Column(_enum(DocumentType, "document_type"), nullable=False, default=DocumentType.OTHER)
    document_number = Column(Integer, nullable=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    esign_contract_id = Column(String(255), nullable=True)
    esign_status = Column(_enum(SignatureStatus, "esign_status"), nullable=True)
    esign_sent_at = Column(DateTime(timezone=True), nullable=True)
    esign_completed_at = Column(DateTime(timezone=True), nullable=True)
    esign_sender_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="documents")

    __table_args__ = (
        UniqueConstraint('file_path', name='uq_document_path'),
        Index('idx_document_entity', 'company_id', 'entity_type', 'entity_id'),
        Index('idx_document_esign_contract', 'esign_contract_id'),
    )

    def __repr__(self):
        return f"<Document(id={self.id}, path='{self.file_path}')>"


class SmsMessage(Base):
    """SMS exchanged with a customer through the SMS provider."""
    __tablename__ = "sms_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(String(100), ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    phone_number = Column(String(20), nullable=False)
    message_body = Column(Text, nullable=False)
    direction = Column(_enum(MessageDirection, "message_direction"), nullable=False)
    provider_message_id = Column(String(100), nullable=True)
    status = Column(_enum(MessageStatus, "message_status"), nullable=False, default=MessageStatus.SENT)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    company = relationship("Company", back_populates="sms_messages")
    customer = relationship("Customer", back_populates="sms_messages")

    __table_args__ = (
        Index('idx_sms_company_phone', 'company_id', 'phone_number'),
        Index('idx_sms_provider_message', 'provider_message_id'),
        Index('idx_sms_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<SmsMessage(id={self.id}, direction='{self.direction}', phone='{self.phone_number}')>"
