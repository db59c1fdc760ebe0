"""Tech stack detection from repository files and the OSV vulnerability scan."""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from opsdash.clients.devops_client import DevOpsClient
from opsdash.clients.osv_client import OSVClient
from opsdash.core.exceptions import UpstreamFetchException
from opsdash.models.security_models import (
    ScanSummary,
    SecurityScan,
    TechStack,
    TechStackItem,
    Vulnerability,
    VulnResult,
    VulnStatus,
)
from opsdash.services.base import BaseService

# package.json dependency -> (display name, item type)
FRONTEND_PACKAGES = {
    "react": ("React", "framework"),
    "next": ("Next.js", "framework"),
    "typescript": ("TypeScript", "runtime"),
    "vite": ("Vite", "framework"),
    "@angular/core": ("Angular", "framework"),
    "vue": ("Vue", "framework"),
}

ESSENTIAL_PACKAGES = {
    "Microsoft.EntityFrameworkCore": "EF Core",
    "Npgsql.EntityFrameworkCore.PostgreSQL": "PostgreSQL",
    "Serilog": "Serilog",
    "Swashbuckle.AspNetCore": "Swagger",
}

ECOSYSTEM_MAP = {
    "React": "npm",
    "TypeScript": "npm",
    "Vite": "npm",
    "Node.js": "npm",
    "Next.js": "npm",
    "Vue": "npm",
    "Angular": "npm",
    ".NET": "NuGet",
    "EF Core": "NuGet",
    "PostgreSQL": "NuGet",
    "Serilog": "NuGet",
    "Swagger": "NuGet",
}

PACKAGE_NAME_MAP = {
    "React": "react",
    "TypeScript": "typescript",
    "Vite": "vite",
    "Node.js": "node",
    "Next.js": "next",
    "Vue": "vue",
    "Angular": "@angular/core",
    ".NET": "Microsoft.NETCore.App",
    "EF Core": "Microsoft.EntityFrameworkCore",
    "PostgreSQL": "Npgsql.EntityFrameworkCore.PostgreSQL",
    "Serilog": "Serilog",
    "Swagger": "Swashbuckle.AspNetCore",
}

INFRASTRUCTURE = "Infrastructure"

_FROM_LINE = re.compile(r"^FROM\s+(?:--\S+\s+)*(\S+)", re.MULTILINE | re.IGNORECASE)
_XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_TARGET_FRAMEWORK = re.compile(r"<TargetFramework>([^<]+)</TargetFramework>")
_PACKAGE_VERSION = re.compile(r'<PackageVersion\s+Include="([^"]+)"\s+Version="([^"]+)"')
_SDK_SUFFIX = re.compile(r"-alpine|-bullseye|-jammy")
_VERSION_PREFIX = re.compile(r"[\^~>=<]")


def _section(manifest: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = manifest.get(key)
    return value if isinstance(value, dict) else {}


def parse_package_json(content: str) -> List[TechStackItem]:
    """Frontend frameworks and the Node engine declared in ``package.json``."""
    manifest = json.loads(content)
    if not isinstance(manifest, dict):
        raise ValueError(f"expected a JSON object, got {type(manifest).__name__}")
    deps = {**_section(manifest, "dependencies"), **_section(manifest, "devDependencies")}

    items = [
        TechStackItem(category="Frontend", name=name, version=deps[package], type=kind)
        for package, (name, kind) in FRONTEND_PACKAGES.items()
        if deps.get(package)
    ]
    node = _section(manifest, "engines").get("node")
    if node:
        items.append(TechStackItem(category="Frontend", name="Node.js", version=node, type="runtime"))
    return items


def parse_dockerfile(content: str) -> List[TechStackItem]:
    items = []
    for image in _FROM_LINE.findall(content):
        if image.startswith("$"):
            continue
        name, version = image, "latest"
        if ":" in image.rsplit("/", 1)[-1]:
            name, version = image.rsplit(":", 1)
        items.append(
            TechStackItem(category=INFRASTRUCTURE, name=name.rsplit("/", 1)[-1], version=version, type="image")
        )
    return items


def parse_build_props(content: str) -> List[TechStackItem]:
    match = _TARGET_FRAMEWORK.search(_XML_COMMENT.sub("", content))
    if not match:
        return []
    return [TechStackItem(category="Backend", name=".NET", version=match.group(1).strip(), type="runtime")]


def parse_packages_props(content: str) -> List[TechStackItem]:
    return [
        TechStackItem(category="Backend", name=ESSENTIAL_PACKAGES[package], version=version, type="dependency")
        for package, version in _PACKAGE_VERSION.findall(content)
        if package in ESSENTIAL_PACKAGES
    ]


def vulnerability_status(vulns: List[Vulnerability]) -> VulnStatus:
    if not vulns:
        return VulnStatus.SAFE
    if any(v.severity in ("critical", "high") for v in vulns):
        return VulnStatus.CRITICAL
    return VulnStatus.WARNING


def summarize(results: List[VulnResult]) -> ScanSummary:
    counts = {status: 0 for status in VulnStatus}
    for result in results:
        counts[VulnStatus(result.status)] += 1
    return ScanSummary(
        total=len(results),
        critical=counts[VulnStatus.CRITICAL],
        warning=counts[VulnStatus.WARNING],
        safe=counts[VulnStatus.SAFE],
        unknown=counts[VulnStatus.UNKNOWN],
    )


class TechStackService(BaseService):
    """Reads manifests from the configured repositories of one DevOps project."""

    def __init__(self, devops_client: DevOpsClient, config: Dict[str, Any]):
        super().__init__(config)
        self.client = devops_client
        self.project = config["project"]
        self.repos = [dict(r) if isinstance(r, dict) else r.model_dump() for r in config.get("repos") or []]

    async def get_tech_stack(self) -> TechStack:
        items: List[TechStackItem] = []
        for repo in self.repos:
            try:
                if repo.get("type") == "backend":
                    items.extend(await self._scan_backend(repo["name"]))
                else:
                    items.extend(await self._scan_frontend(repo["name"]))
            except UpstreamFetchException as e:
                self.logger.warning("Skipping repository", repository=repo["name"], error=e.message)

        self.logger.info("Detected tech stack", repos=len(self.repos), items=len(items))
        return TechStack(tech_stack=items, repos=[r["name"] for r in self.repos], timestamp=self.timestamp())

    async def _read(self, repository: str, path: str) -> Optional[str]:
        return await self.client.get_file_content(self.project, repository, path)

    async def _scan_frontend(self, repository: str) -> List[TechStackItem]:
        entries = await self.client.list_repository_items(self.project, repository)
        if not any(entry.get("path") == "/package.json" for entry in entries):
            return []
        content = await self._read(repository, "/package.json")
        if not content:
            return []
        try:
            return parse_package_json(content)
        except ValueError as e:
            self.logger.warning("Invalid package.json", repository=repository, error=str(e))
            return []

    async def _scan_backend(self, repository: str) -> List[TechStackItem]:
        entries = await self.client.list_repository_items(self.project, repository, recursion_level="Full")
        paths = [entry.get("path") or "" for entry in entries]

        parsers: List[Tuple[Optional[str], Any]] = [
            (next((p for p in paths if p.endswith("/Dockerfile")), None), parse_dockerfile),
            ("/Directory.Build.props" if "/Directory.Build.props" in paths else None, parse_build_props),
            ("/Directory.Packages.props" if "/Directory.Packages.props" in paths else None, parse_packages_props),
        ]

        items: List[TechStackItem] = []
        for path, parser in parsers:
            if path is None:
                continue
            content = await self._read(repository, path)
            if content:
                items.extend(parser(content))
        return items


class SecurityScanService(BaseService):
    """Checks every detected package version against OSV."""

    def __init__(self, tech_stack_service: TechStackService, osv_client: OSVClient, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.tech_stack_service = tech_stack_service
        self.osv_client = osv_client

    @staticmethod
    def sdk_version(items: List[TechStackItem]) -> Optional[str]:
        """Version of the .NET ``sdk`` base image, without distro suffixes."""
        image = next((i for i in items if i.category == INFRASTRUCTURE and i.name == "sdk"), None)
        if image is None:
            return None
        return _SDK_SUFFIX.sub("", image.version).strip() or None

    @staticmethod
    def query_target(item: TechStackItem, sdk_version: Optional[str]) -> Tuple[str, str]:
        """OSV package name and cleaned version for a tech stack item."""
        package = PACKAGE_NAME_MAP.get(item.name, item.name)
        version = _VERSION_PREFIX.sub("", item.version).strip()
        if item.name == ".NET" and version.startswith("net"):
            version = sdk_version or f"{version[3:]}.0"
        return package, version

    async def scan(self) -> SecurityScan:
        tech_stack = await self.tech_stack_service.get_tech_stack()
        packages = [i for i in tech_stack.tech_stack if i.category != INFRASTRUCTURE]
        sdk_version = self.sdk_version(tech_stack.tech_stack)

        results: List[Optional[VulnResult]] = [None] * len(packages)
        pending = []
        for index, item in enumerate(packages):
            ecosystem = ECOSYSTEM_MAP.get(item.name)
            if ecosystem is None:
                results[index] = VulnResult(
                    package=item.name, version=item.version, ecosystem="unknown", status=VulnStatus.UNKNOWN
                )
                continue
            package, version = self.query_target(item, sdk_version)
            pending.append((index, item, ecosystem, self.osv_client.query(package, version, ecosystem)))

        found = await self.gather_items(
            [coro for _, _, _, coro in pending],
            default=None,
            labels=[item.name for _, item, _, _ in pending],
        )

        for (index, item, ecosystem, _), vulns in zip(pending, found):
            if vulns is None:
                results[index] = VulnResult(
                    package=item.name, version=item.version, ecosystem=ecosystem, status=VulnStatus.UNKNOWN
                )
                continue
            version = item.version
            if item.name == ".NET" and sdk_version:
                version = f"{version} (SDK {sdk_version})"
            results[index] = VulnResult(
                package=item.name,
                version=version,
                ecosystem=ecosystem,
                vulnerabilities=vulns,
                status=vulnerability_status(vulns),
            )

        scan = SecurityScan(results=results, summary=summarize(results), timestamp=self.timestamp())
        self.logger.info("Security scan completed", packages=len(results), critical=scan.summary.critical)
        return scan
