"""Database models — re-exports all models.

Import from here:  from swagsuite.models import User, Company, ...
Or from submodules: from swagsuite.models.orders import Order
"""

from .base import Base  # noqa: F401

# Auth & Users
from .auth import User  # noqa: F401

# CRM: Companies, Contacts, Leads
from .crm import Company, Contact, Lead  # noqa: F401

# Catalog: Suppliers, Products, Vendor Approvals
from .catalog import (  # noqa: F401
    Product,
    ProductCategory,
    Supplier,
    VendorApprovalRequest,
)

# Orders & order-attached records
from .orders import (  # noqa: F401
    ArtworkFile,
    Attachment,
    Communication,
    Order,
    OrderError,
    OrderItem,
)

# Artwork board
from .artwork import ArtworkCard, ArtworkColumn  # noqa: F401

# Activity log & notifications
from .activity import Activity, Notification  # noqa: F401

# Sales sequences
from .sequences import (  # noqa: F401
    Sequence,
    SequenceAnalytics,
    SequenceEnrollment,
    SequenceStep,
    SequenceStepExecution,
)

# Mockups & presentations
from .mockups import MockupTemplate, Presentation, PresentationProduct  # noqa: F401
