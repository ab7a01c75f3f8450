"""Cache configuration and TTL settings"""

# Cache TTL (Time To Live) configurations in seconds
CACHE_TTL = {
    # Server-side read-through sections
    "subjects": 3600,         # 1 hour
    "static_data": 86400,     # 24 hours
    "dynamic_data": 300,      # 5 minutes
    "grouped_resources": 3600,  # 1 hour
    "subjects_route": 3600,   # 1 hour
    "resources_route": 300,   # 5 minutes

    # Client regions
    "client_profile": None,   # never expires
    "client_static": 86400,
    "client_subjects": 3600,
    "client_dynamic": 300,
    "client_resources": 300,
    "client_resources_max": 3600,
}

# Cache key patterns
CACHE_KEYS = {
    "subjects": "subjects:{}:{}:{}",
    "static_data": "static:data",
    "dynamic_data": "dynamic:{}:{}",
    "grouped_resources": "resources:{}:{}:{}",
    "subjects_route": "subjects:v2:{}:{}:{}:{}:{}",
    "resources_route": "resources:v3:{}",
}

# Cache invalidation patterns - what to clear when data changes
INVALIDATION_PATTERNS = {
    "subjects_update": [
        "subjects:*",
    ],
    "resource_update": [
        "resources:*",
    ],
    "reference_update": [
        "static:data",
    ],
    "dashboard_update": [
        "dynamic:*",
    ],
}

# Sentinels used when a key component is absent
KEY_DEFAULT = "default"
KEY_ALL = "all"
KEY_NONE = "none"
