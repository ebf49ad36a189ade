"""Shared vocabularies for platforms and row statuses."""

PLATFORM_FACEBOOK = "facebook"
PLATFORM_INSTAGRAM = "instagram"
PLATFORM_GOOGLE = "google"
SUPPORTED_PLATFORMS = (PLATFORM_FACEBOOK, PLATFORM_INSTAGRAM, PLATFORM_GOOGLE)
# Platforms reachable through the Facebook Login flow.
CONNECTABLE_PLATFORMS = (PLATFORM_FACEBOOK, PLATFORM_INSTAGRAM)

ROLE_ADMIN = "admin"
ROLE_BRAND = "brand"
ROLE_PARTNER = "partner"
ROLES = (ROLE_ADMIN, ROLE_BRAND, ROLE_PARTNER)

# retail_partners.status
PARTNER_ACTIVE = "active"
PARTNER_PENDING = "pending"
PARTNER_NEEDS_ATTENTION = "needs_attention"
PARTNER_INACTIVE = "inactive"
PARTNER_STATUSES = (PARTNER_ACTIVE, PARTNER_PENDING, PARTNER_NEEDS_ATTENTION, PARTNER_INACTIVE)

# content_posts.status
POST_DRAFT = "draft"
POST_SCHEDULED = "scheduled"
POST_PUBLISHED = "published"
POST_AUTOMATED = "automated"
POST_STATUSES = (POST_DRAFT, POST_SCHEDULED, POST_PUBLISHED, POST_AUTOMATED)

# post_assignments.status
ASSIGNMENT_PENDING = "pending"
ASSIGNMENT_PUBLISHED = "published"
ASSIGNMENT_FAILED = "failed"

# social_accounts.status
ACCOUNT_ACTIVE = "active"
ACCOUNT_PENDING = "pending"
ACCOUNT_EXPIRED = "expired"
