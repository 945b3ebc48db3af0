"""
Capability Configuration
This config defines the capability flags stored on every user_permissions row
and the grant templates used by the admin seed script.
"""

# Define resources and the capability flag for each action
RESOURCES = {
    "product": {
        "resource": "product",
        "actions": ["add", "edit", "delete"],
        "description": "Product catalog entries"
    },
    "price_history": {
        "resource": "price_history",
        "actions": ["add", "edit", "delete"],
        "description": "Dated price points per product"
    }
}

# Flags that are not tied to a single resource
ADMIN_FLAG = "is_admin"
ADMIN_DESCRIPTION = "Manage user permissions, review the audit trail and recover deleted products"

# Grant templates per role
ROLE_TYPES = {
    "ADMIN": {
        "is_admin": True,
        "actions": ["add", "edit", "delete"],
        "description": "Full access to the catalog and the admin area"
    },
    "DEFAULT": {
        "is_admin": False,
        "actions": [],
        "description": "Read-only access; assigned on first sign-in"
    }
}


def capability_flag(resource: str, action: str) -> str:
    return f"{action}_{resource}"


def get_capability_flags():
    """The six capability column names, in display order"""
    return [
        capability_flag(config["resource"], action)
        for config in RESOURCES.values()
        for action in config["actions"]
    ]


def get_role_grants(role_type: str) -> dict:
    """
    Returns the user_permissions column values for a role template
    Format: {"add_product": True, ..., "is_admin": True}
    """
    role = ROLE_TYPES[role_type]
    grants = {flag: False for flag in get_capability_flags()}
    for config in RESOURCES.values():
        for action in role["actions"]:
            if action in config["actions"]:
                grants[capability_flag(config["resource"], action)] = True
    grants[ADMIN_FLAG] = role["is_admin"]
    return grants


# Generate capability matrix
def get_capability_matrix():
    """
    Returns a dictionary with all capability flags and the role templates
    Format: {
        "capabilities": [
            {"name": "add_product", "resource": "product", "action": "add", "description": "..."},
            ...
        ],
        "roles": [
            {"name": "admin", "description": "...", "grants": {"add_product": True, ...}},
            ...
        ]
    }
    """
    capabilities = []
    for config in RESOURCES.values():
        resource = config["resource"]
        for action in config["actions"]:
            capabilities.append({
                "name": capability_flag(resource, action),
                "resource": resource,
                "action": action,
                "description": f"{action.capitalize()} {config['description'].lower()}"
            })
    capabilities.append({
        "name": ADMIN_FLAG,
        "resource": "admin",
        "action": "manage",
        "description": ADMIN_DESCRIPTION
    })

    roles = [
        {
            "name": role_type.lower(),
            "description": role_config["description"],
            "grants": get_role_grants(role_type)
        }
        for role_type, role_config in ROLE_TYPES.items()
    ]

    return {
        "capabilities": capabilities,
        "roles": roles
    }


CAPABILITY_FLAGS = get_capability_flags()
