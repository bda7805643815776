"""
Operation-level entry points

Each function takes the session, the authenticated ActorContext and a typed
payload, and returns ``Ok(data)`` or ``Err(kind, message)``. Failures never
escape as exceptions except programming errors; storage failures are
logged with detail and surfaced as a generic internal error.
"""

from tracker.core.result import as_operation
from tracker.services import (
    audit_service,
    auth_service,
    project_service,
    task_service,
    tenant_service,
    user_service,
)

# Tenants
register_tenant = as_operation(tenant_service.register_tenant)
create_tenant = as_operation(tenant_service.create_tenant)
get_tenant = as_operation(tenant_service.get_tenant)
list_tenants = as_operation(tenant_service.list_tenants)
update_tenant = as_operation(tenant_service.update_tenant)

# Users
create_user = as_operation(user_service.create_user)
list_users = as_operation(user_service.list_users)
get_user = as_operation(user_service.get_user)
update_user = as_operation(user_service.update_user)
delete_user = as_operation(user_service.delete_user)

# Projects
create_project = as_operation(project_service.create_project)
list_projects = as_operation(project_service.list_projects)
get_project = as_operation(project_service.get_project)
update_project = as_operation(project_service.update_project)
delete_project = as_operation(project_service.delete_project)

# Tasks
create_task = as_operation(task_service.create_task)
list_tasks = as_operation(task_service.list_tasks)
get_task = as_operation(task_service.get_task)
update_task = as_operation(task_service.update_task)
update_task_status = as_operation(task_service.update_task_status)
delete_task = as_operation(task_service.delete_task)

# Audit trail
list_audit_logs = as_operation(audit_service.list_audit_logs)

# Credential layer
authenticate = as_operation(auth_service.authenticate)
get_profile = as_operation(auth_service.get_profile)
