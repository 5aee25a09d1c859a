# one frozen dataclass per (resource, operation) pair.

# Parameters are read and validated once, in from_params(), before anything
# touches the network. run() then only builds the path/body/query and calls
# ctx.request. parse_operation() is the single place an unknown pair can be
# reported, so nothing downstream needs an "unsupported operation" branch.
#
# Parameter names follow the host's node parameters (camelCase), e.g.
#   {"resource": "deployment", "operation": "get", "deploymentId": "..."}

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

from deno_deploy.config import DEFAULT_LIST_LIMIT
from deno_deploy.errors import ValidationError
from deno_deploy.pagination import RequestFn, request_all_items
from deno_deploy.parser import (
    collection,
    format_datetime,
    parse_assets,
    parse_database_bindings,
    parse_env_vars,
)

Params = Mapping[str, Any]


@dataclass(frozen=True)
class OperationContext:
    request: RequestFn           # gateway-style coroutine, usually already retry-wrapped
    organization_id: str


class Operation:
    resource: ClassVar[str]
    operation: ClassVar[str]

    @classmethod
    def from_params(cls, params: Params) -> "Operation":
        return cls()

    async def run(self, ctx: OperationContext) -> Any:
        raise NotImplementedError


OPERATIONS: dict[tuple[str, str], type[Operation]] = {}


def register(cls: type[Operation]) -> type[Operation]:
    OPERATIONS[(cls.resource, cls.operation)] = cls
    return cls


def parse_operation(params: Params) -> Operation:
    resource  = params.get("resource")
    operation = params.get("operation")
    op_cls = OPERATIONS.get((resource, operation))  # type: ignore[arg-type]
    if op_cls is None:
        raise ValidationError(f"The operation '{operation}' is not supported for resource '{resource}'")
    return op_cls.from_params(params)


# ─── parameter helpers ────────────────────────────────────────────────────────

def _required(params: Params, name: str, strip: bool = True) -> str:
    value = params.get(name)
    if value is None or not str(value).strip():
        raise ValidationError(f"Parameter '{name}' is required")
    return str(value).strip() if strip else str(value)


def _options(params: Params, name: str) -> dict[str, Any]:
    value = params.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"Parameter '{name}' must be an object")
    return dict(value)


def _pick(source: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    """Copy the truthy entries of `keys` from source."""
    return {key: source[key] for key in keys if source.get(key)}


def _date_range(params: Params) -> dict[str, str]:
    return {
        "since": format_datetime(_required(params, "since")),
        "until": format_datetime(_required(params, "until")),
    }


def _update_fields(params: Params) -> dict[str, Any]:
    fields = {k: v for k, v in _options(params, "updateFields").items() if v not in (None, "")}
    if not fields:
        raise ValidationError("Please specify at least one field to update")
    return fields


@dataclass(frozen=True)
class _Listing:
    return_all: bool
    limit: int

    @classmethod
    def from_params(cls, params: Params) -> "_Listing":
        return_all = bool(params.get("returnAll", False))
        limit = params.get("limit", DEFAULT_LIST_LIMIT)
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            raise ValidationError(f"Parameter 'limit' must be a number, got {limit!r}") from None
        if not return_all and limit < 1:
            raise ValidationError("Parameter 'limit' must be at least 1")
        return cls(return_all=return_all, limit=limit)

    async def fetch(self, ctx: OperationContext, path: str) -> Any:
        if self.return_all:
            return await request_all_items(ctx.request, "GET", path)
        return await ctx.request("GET", path, None, {"limit": self.limit})


# ─── organization ─────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class GetOrganization(Operation):
    resource  = "organization"
    operation = "get"

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/organizations/{ctx.organization_id}")


@register
@dataclass(frozen=True)
class GetOrganizationAnalytics(Operation):
    resource  = "organization"
    operation = "getAnalytics"
    since: str
    until: str

    @classmethod
    def from_params(cls, params: Params) -> "GetOrganizationAnalytics":
        return cls(**_date_range(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request(
            "GET", f"/organizations/{ctx.organization_id}/analytics",
            None, {"since": self.since, "until": self.until},
        )


@register
@dataclass(frozen=True)
class ListOrganizationDomains(Operation):
    resource  = "organization"
    operation = "listDomains"
    listing: _Listing

    @classmethod
    def from_params(cls, params: Params) -> "ListOrganizationDomains":
        return cls(listing=_Listing.from_params(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await self.listing.fetch(ctx, f"/organizations/{ctx.organization_id}/domains")


# ─── project ──────────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListProjects(Operation):
    resource  = "project"
    operation = "list"
    listing: _Listing

    @classmethod
    def from_params(cls, params: Params) -> "ListProjects":
        return cls(listing=_Listing.from_params(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await self.listing.fetch(ctx, f"/organizations/{ctx.organization_id}/projects")


@register
@dataclass(frozen=True)
class CreateProject(Operation):
    resource  = "project"
    operation = "create"
    name: str
    description: str | None = None

    @classmethod
    def from_params(cls, params: Params) -> "CreateProject":
        extra = _options(params, "additionalFields")
        return cls(name=_required(params, "name"), description=extra.get("description") or None)

    async def run(self, ctx: OperationContext) -> Any:
        body: dict[str, Any] = {"name": self.name}
        if self.description:
            body["description"] = self.description
        return await ctx.request("POST", f"/organizations/{ctx.organization_id}/projects", body)


@register
@dataclass(frozen=True)
class GetProject(Operation):
    resource  = "project"
    operation = "get"
    project_id: str

    @classmethod
    def from_params(cls, params: Params) -> "GetProject":
        return cls(project_id=_required(params, "projectId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/projects/{self.project_id}")


@register
@dataclass(frozen=True)
class UpdateProject(Operation):
    resource  = "project"
    operation = "update"
    project_id: str
    fields: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "UpdateProject":
        return cls(project_id=_required(params, "projectId"), fields=_update_fields(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("PATCH", f"/projects/{self.project_id}", self.fields)


@register
@dataclass(frozen=True)
class DeleteProject(Operation):
    resource  = "project"
    operation = "delete"
    project_id: str

    @classmethod
    def from_params(cls, params: Params) -> "DeleteProject":
        return cls(project_id=_required(params, "projectId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("DELETE", f"/projects/{self.project_id}")


@register
@dataclass(frozen=True)
class GetProjectAnalytics(Operation):
    resource  = "project"
    operation = "getAnalytics"
    project_id: str
    since: str
    until: str

    @classmethod
    def from_params(cls, params: Params) -> "GetProjectAnalytics":
        return cls(project_id=_required(params, "projectId"), **_date_range(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request(
            "GET", f"/projects/{self.project_id}/analytics",
            None, {"since": self.since, "until": self.until},
        )


# ─── deployment ───────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListDeployments(Operation):
    resource  = "deployment"
    operation = "list"
    project_id: str
    listing: _Listing

    @classmethod
    def from_params(cls, params: Params) -> "ListDeployments":
        return cls(project_id=_required(params, "projectId"), listing=_Listing.from_params(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await self.listing.fetch(ctx, f"/projects/{self.project_id}/deployments")


@register
@dataclass(frozen=True)
class CreateDeployment(Operation):
    """
    Upload a new deployment.

    codeInputMethod "inline" turns `code` into the asset main.ts and makes it
    the entry point, merging any extra `assets`; "url" deploys from
    `entryPointUrl` with no uploaded assets.
    """
    resource  = "deployment"
    operation = "create"
    project_id: str
    body: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "CreateDeployment":
        project_id = _required(params, "projectId")
        method     = params.get("codeInputMethod", "inline")
        options    = _options(params, "options")

        assets: dict[str, dict[str, str]] = {}
        if method == "inline":
            entry_point_url = "main.ts"
            assets[entry_point_url] = {
                "kind": "file",
                "content": _required(params, "code", strip=False),
                "encoding": "utf-8",
            }
            assets.update(parse_assets(collection(params.get("assets"), "asset")))
        elif method == "url":
            entry_point_url = _required(params, "entryPointUrl")
        else:
            raise ValidationError(f"Unknown codeInputMethod {method!r}; expected 'inline' or 'url'")

        body: dict[str, Any] = {"entryPointUrl": entry_point_url, "assets": assets}
        if options.get("description"):
            body["description"] = options["description"]
        env_vars = collection(options.get("envVars"), "envVar")
        if env_vars:
            body["envVars"] = parse_env_vars(env_vars)
        bindings = collection(options.get("databases"), "binding")
        if bindings:
            body["databases"] = parse_database_bindings(bindings)
        if options.get("compilerOptions"):
            body["compilerOptions"] = dict(options["compilerOptions"])

        return cls(project_id=project_id, body=body)

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("POST", f"/projects/{self.project_id}/deployments", self.body)


@register
@dataclass(frozen=True)
class GetDeployment(Operation):
    resource  = "deployment"
    operation = "get"
    deployment_id: str

    @classmethod
    def from_params(cls, params: Params) -> "GetDeployment":
        return cls(deployment_id=_required(params, "deploymentId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/deployments/{self.deployment_id}")


@register
@dataclass(frozen=True)
class DeleteDeployment(Operation):
    resource  = "deployment"
    operation = "delete"
    deployment_id: str

    @classmethod
    def from_params(cls, params: Params) -> "DeleteDeployment":
        return cls(deployment_id=_required(params, "deploymentId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("DELETE", f"/deployments/{self.deployment_id}")


@register
@dataclass(frozen=True)
class RedeployDeployment(Operation):
    resource  = "deployment"
    operation = "redeploy"
    deployment_id: str
    description: str | None = None

    @classmethod
    def from_params(cls, params: Params) -> "RedeployDeployment":
        options = _options(params, "redeployOptions")
        return cls(
            deployment_id=_required(params, "deploymentId"),
            description=options.get("description") or None,
        )

    async def run(self, ctx: OperationContext) -> Any:
        body = {"description": self.description} if self.description else None
        return await ctx.request("POST", f"/deployments/{self.deployment_id}/redeploy", body)


@register
@dataclass(frozen=True)
class GetDeploymentBuildLogs(Operation):
    resource  = "deployment"
    operation = "getBuildLogs"
    deployment_id: str
    query: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "GetDeploymentBuildLogs":
        options = _options(params, "buildLogOptions")
        return cls(
            deployment_id=_required(params, "deploymentId"),
            query=_pick(options, "level", "cursor"),
        )

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/deployments/{self.deployment_id}/build_logs", None, self.query)


@register
@dataclass(frozen=True)
class GetDeploymentAppLogs(Operation):
    resource  = "deployment"
    operation = "getAppLogs"
    deployment_id: str
    query: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "GetDeploymentAppLogs":
        options = _options(params, "appLogOptions")
        query = _pick(options, "since", "until", "level", "region", "limit", "cursor")
        for key in ("since", "until"):
            if key in query:
                query[key] = format_datetime(query[key])
        return cls(deployment_id=_required(params, "deploymentId"), query=query)

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/deployments/{self.deployment_id}/app_logs", None, self.query)


# ─── domain ───────────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListDomains(Operation):
    resource  = "domain"
    operation = "list"
    project_id: str
    listing: _Listing

    @classmethod
    def from_params(cls, params: Params) -> "ListDomains":
        return cls(project_id=_required(params, "projectId"), listing=_Listing.from_params(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await self.listing.fetch(ctx, f"/projects/{self.project_id}/domains")


@register
@dataclass(frozen=True)
class AddDomain(Operation):
    resource  = "domain"
    operation = "add"
    project_id: str
    domain: str

    @classmethod
    def from_params(cls, params: Params) -> "AddDomain":
        return cls(project_id=_required(params, "projectId"), domain=_required(params, "domain"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("POST", f"/projects/{self.project_id}/domains", {"domain": self.domain})


@dataclass(frozen=True)
class _DomainById(Operation):
    method: ClassVar[str] = "GET"
    suffix: ClassVar[str] = ""
    domain_id: str

    @classmethod
    def from_params(cls, params: Params) -> "_DomainById":
        return cls(domain_id=_required(params, "domainId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request(self.method, f"/domains/{self.domain_id}{self.suffix}")


@register
@dataclass(frozen=True)
class GetDomain(_DomainById):
    resource  = "domain"
    operation = "get"


@register
@dataclass(frozen=True)
class DeleteDomain(_DomainById):
    resource  = "domain"
    operation = "delete"
    method    = "DELETE"


@register
@dataclass(frozen=True)
class VerifyDomain(_DomainById):
    resource  = "domain"
    operation = "verify"
    method    = "POST"
    suffix    = "/verify"


@register
@dataclass(frozen=True)
class GetDomainCertificates(_DomainById):
    resource  = "domain"
    operation = "getCertificates"
    suffix    = "/certificates"


@register
@dataclass(frozen=True)
class ProvisionDomainCertificate(_DomainById):
    resource  = "domain"
    operation = "provisionCertificate"
    method    = "POST"
    suffix    = "/certificates"


# ─── kv database ──────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListDatabases(Operation):
    resource  = "kvDatabase"
    operation = "list"
    listing: _Listing

    @classmethod
    def from_params(cls, params: Params) -> "ListDatabases":
        return cls(listing=_Listing.from_params(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await self.listing.fetch(ctx, f"/organizations/{ctx.organization_id}/databases")


@register
@dataclass(frozen=True)
class CreateDatabase(Operation):
    resource  = "kvDatabase"
    operation = "create"
    description: str | None = None

    @classmethod
    def from_params(cls, params: Params) -> "CreateDatabase":
        return cls(description=params.get("description") or None)

    async def run(self, ctx: OperationContext) -> Any:
        body = {"description": self.description} if self.description else None
        return await ctx.request("POST", f"/organizations/{ctx.organization_id}/databases", body)


@register
@dataclass(frozen=True)
class GetDatabase(Operation):
    resource  = "kvDatabase"
    operation = "get"
    database_id: str

    @classmethod
    def from_params(cls, params: Params) -> "GetDatabase":
        return cls(database_id=_required(params, "databaseId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/databases/{self.database_id}")


@register
@dataclass(frozen=True)
class UpdateDatabase(Operation):
    resource  = "kvDatabase"
    operation = "update"
    database_id: str
    fields: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "UpdateDatabase":
        return cls(database_id=_required(params, "databaseId"), fields=_update_fields(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("PATCH", f"/databases/{self.database_id}", self.fields)


@register
@dataclass(frozen=True)
class DeleteDatabase(Operation):
    resource  = "kvDatabase"
    operation = "delete"
    database_id: str

    @classmethod
    def from_params(cls, params: Params) -> "DeleteDatabase":
        return cls(database_id=_required(params, "databaseId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("DELETE", f"/databases/{self.database_id}")


# ─── build / app logs ─────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class GetBuildLogs(Operation):
    resource  = "buildLog"
    operation = "get"
    project_id: str
    deployment_id: str
    query: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "GetBuildLogs":
        return cls(
            project_id=_required(params, "projectId"),
            deployment_id=_required(params, "deploymentId"),
            query=_pick(_options(params, "options"), "level", "cursor"),
        )

    async def run(self, ctx: OperationContext) -> Any:
        response = await ctx.request("GET", f"/deployments/{self.deployment_id}/build_logs", None, self.query)
        if isinstance(response, dict):
            response = {**response, "projectId": self.project_id}
        return response


@dataclass(frozen=True)
class _ProjectLogs(Operation):
    project_id: str
    query: dict[str, Any] = field(hash=False)

    @classmethod
    def _base_query(cls, params: Params) -> dict[str, Any]:
        query = _pick(_options(params, "options"), "level", "region", "limit", "cursor")
        if params.get("deploymentId"):
            query["deployment_id"] = str(params["deploymentId"]).strip()
        return query

    @classmethod
    def from_params(cls, params: Params) -> "_ProjectLogs":
        return cls(project_id=_required(params, "projectId"), query=cls._base_query(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/projects/{self.project_id}/logs", None, self.query)


@register
@dataclass(frozen=True)
class GetAppLogs(_ProjectLogs):
    resource  = "appLog"
    operation = "get"


@register
@dataclass(frozen=True)
class QueryAppLogs(_ProjectLogs):
    resource  = "appLog"
    operation = "query"

    @classmethod
    def from_params(cls, params: Params) -> "QueryAppLogs":
        query = cls._base_query(params)
        for key in ("since", "until"):
            if params.get(key):
                query[key] = format_datetime(params[key])
        return cls(project_id=_required(params, "projectId"), query=query)


# ─── environment variables ────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListEnvVars(Operation):
    resource  = "environmentVariable"
    operation = "list"
    project_id: str

    @classmethod
    def from_params(cls, params: Params) -> "ListEnvVars":
        return cls(project_id=_required(params, "projectId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/projects/{self.project_id}/env")


@register
@dataclass(frozen=True)
class SetEnvVars(Operation):
    resource  = "environmentVariable"
    operation = "set"
    project_id: str
    env_vars: dict[str, str] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "SetEnvVars":
        env_vars = parse_env_vars(collection(params.get("envVars"), "envVar"))
        if not env_vars:
            raise ValidationError("Please specify at least one environment variable")
        return cls(project_id=_required(params, "projectId"), env_vars=env_vars)

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("PATCH", f"/projects/{self.project_id}/env", self.env_vars)


@register
@dataclass(frozen=True)
class DeleteEnvVar(Operation):
    resource  = "environmentVariable"
    operation = "delete"
    project_id: str
    key: str

    @classmethod
    def from_params(cls, params: Params) -> "DeleteEnvVar":
        return cls(project_id=_required(params, "projectId"), key=_required(params, "key"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("DELETE", f"/projects/{self.project_id}/env/{self.key}")


# ─── analytics ────────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class GetOrganizationUsage(GetOrganizationAnalytics):
    resource  = "analytics"
    operation = "getOrganization"


@register
@dataclass(frozen=True)
class GetProjectUsage(GetProjectAnalytics):
    resource  = "analytics"
    operation = "getProject"


@register
@dataclass(frozen=True)
class GetDeploymentUsage(Operation):
    resource  = "analytics"
    operation = "getDeployment"
    deployment_id: str
    since: str
    until: str

    @classmethod
    def from_params(cls, params: Params) -> "GetDeploymentUsage":
        return cls(deployment_id=_required(params, "deploymentId"), **_date_range(params))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request(
            "GET", f"/deployments/{self.deployment_id}/analytics",
            None, {"since": self.since, "until": self.until},
        )


# ─── certificate ──────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListCertificates(GetDomainCertificates):
    resource  = "certificate"
    operation = "list"


@register
@dataclass(frozen=True)
class ProvisionCertificate(ProvisionDomainCertificate):
    resource  = "certificate"
    operation = "provision"


@register
@dataclass(frozen=True)
class GetCertificate(Operation):
    resource  = "certificate"
    operation = "get"
    certificate_id: str

    @classmethod
    def from_params(cls, params: Params) -> "GetCertificate":
        return cls(certificate_id=_required(params, "certificateId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/certificates/{self.certificate_id}")


# ─── region ───────────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class ListRegions(Operation):
    resource  = "region"
    operation = "list"

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", "/regions")


# ─── playground ───────────────────────────────────────────────────────────────

@register
@dataclass(frozen=True)
class CreatePlayground(Operation):
    resource  = "playground"
    operation = "create"
    body: dict[str, Any] = field(hash=False)

    @classmethod
    def from_params(cls, params: Params) -> "CreatePlayground":
        options = _options(params, "options")
        body: dict[str, Any] = {
            "code": _required(params, "code", strip=False),
            "entryPoint": options.get("entryPoint") or "main.ts",
        }
        env_vars = collection(options.get("envVars"), "envVar")
        if env_vars:
            body["envVars"] = parse_env_vars(env_vars)
        return cls(body=body)

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("POST", f"/organizations/{ctx.organization_id}/playgrounds", self.body)


@register
@dataclass(frozen=True)
class GetPlayground(Operation):
    resource  = "playground"
    operation = "get"
    playground_id: str

    @classmethod
    def from_params(cls, params: Params) -> "GetPlayground":
        return cls(playground_id=_required(params, "playgroundId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("GET", f"/playgrounds/{self.playground_id}")


@register
@dataclass(frozen=True)
class DeletePlayground(Operation):
    resource  = "playground"
    operation = "delete"
    playground_id: str

    @classmethod
    def from_params(cls, params: Params) -> "DeletePlayground":
        return cls(playground_id=_required(params, "playgroundId"))

    async def run(self, ctx: OperationContext) -> Any:
        return await ctx.request("DELETE", f"/playgrounds/{self.playground_id}")
