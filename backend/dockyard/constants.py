"""API route configuration and fixed names shared across the backend."""

# Base prefix for all versioned API routes
API_PREFIX = "/v4"

# Custom event channel used by the notifications plugin
BUILD_STATUS_EVENT = "build_status"

# Token scopes
BUILD_TOKEN_SCOPE = "temporal"
USER_TOKEN_SCOPE = "user"

# Shutdown task that drains the executor queue
EXECUTOR_CLEANUP_TASK = "executor-queue-cleanup"

# Factory names looked up during post-registration wiring
BUILD_FACTORY = "build_factory"
JOB_FACTORY = "job_factory"
