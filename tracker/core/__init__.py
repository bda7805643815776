"""Authorization, quota, lifecycle and audit core shared by every service."""
