"""Provider interface and its boto3 implementation.

The reaper core only talks to a Provider. Resources cross this boundary as
plain dictionaries with the keys:

    resource_id, name, status, created_at, tags, parent_id, default

``tags`` is None when the listing API does not return tags (ELBv2); the
caller then asks for them with describe_tags().
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..models.resource import LOAD_BALANCER_TYPE, VPC_TYPE, SubResourceCategory, tags_to_dict
from .client import create_boto_client

logger = logging.getLogger(__name__)

# Errors raised while a dependent resource still references the target
DEPENDENCY_ERROR_CODES = ("DependencyViolation", "ResourceInUse", "InvalidGroup.InUse")

NOT_FOUND_ERROR_CODES = (
    "InvalidVpcID.NotFound",
    "InvalidGroup.NotFound",
    "InvalidInternetGatewayID.NotFound",
    "InvalidSubnetID.NotFound",
    "InvalidRouteTableID.NotFound",
    "LoadBalancerNotFound",
)

# ELBv2 add_tags accepts at most 20 ARNs per call
ELB_TAGGING_BATCH = 20


class ProviderError(Exception):
    """Raised when a provider call fails.

    Attributes:
        message: Human-readable error
        error_code: AWS error code, "ConnectionError" for transport failures
    """

    def __init__(self, message: str, error_code: str = "Unknown"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    @property
    def is_dependency_violation(self) -> bool:
        return self.error_code in DEPENDENCY_ERROR_CODES


class Provider(ABC):
    """Cloud provider operations the reaper depends on."""

    @property
    @abstractmethod
    def region(self) -> str:
        """Region of this provider handle (diagnostics only)."""

    @abstractmethod
    def list_resources(
        self, resource_type: str, filters: Optional[Dict[str, List[str]]] = None
    ) -> List[Dict[str, Any]]:
        """List resources of a type.

        Args:
            resource_type: AWS resource type (e.g., "AWS::EC2::VPC")
            filters: Filter name to accepted values (e.g., {"tag-key": ["ttl"]}),
                None for every resource of the type

        Returns:
            Resource dictionaries, empty when nothing matches

        Raises:
            ProviderError: If the provider cannot be reached or denies access
        """

    @abstractmethod
    def describe_tags(self, resource_id: str) -> Dict[str, str]:
        """Return the tags of a single resource."""

    @abstractmethod
    def add_tags(self, resource_ids: List[str], tags: Dict[str, str]) -> None:
        """Apply tags to every given resource."""

    @abstractmethod
    def delete_resource(self, resource_type: str, resource_id: str, parent_id: Optional[str] = None) -> None:
        """Delete a resource.

        Raises:
            ProviderError: If the deletion is rejected
        """


class AWSProvider(Provider):
    """Provider backed by boto3 EC2 and ELBv2 clients."""

    # Listing method mapping: resource_type -> (service, paginated method, result key)
    LISTING_METHODS = {
        VPC_TYPE: ("ec2", "describe_vpcs", "Vpcs"),
        "AWS::EC2::SecurityGroup": ("ec2", "describe_security_groups", "SecurityGroups"),
        "AWS::EC2::InternetGateway": ("ec2", "describe_internet_gateways", "InternetGateways"),
        "AWS::EC2::Subnet": ("ec2", "describe_subnets", "Subnets"),
        "AWS::EC2::RouteTable": ("ec2", "describe_route_tables", "RouteTables"),
        LOAD_BALANCER_TYPE: ("elbv2", "describe_load_balancers", "LoadBalancers"),
    }

    # Deletion method mapping: resource_type -> (service, method, id_field)
    DELETION_METHODS = {
        VPC_TYPE: ("ec2", "delete_vpc", "VpcId"),
        "AWS::EC2::SecurityGroup": ("ec2", "delete_security_group", "GroupId"),
        "AWS::EC2::InternetGateway": ("ec2", "delete_internet_gateway", "InternetGatewayId"),
        "AWS::EC2::Subnet": ("ec2", "delete_subnet", "SubnetId"),
        "AWS::EC2::RouteTable": ("ec2", "delete_route_table", "RouteTableId"),
        LOAD_BALANCER_TYPE: ("elbv2", "delete_load_balancer", "LoadBalancerArn"),
    }

    # Internet gateways reference their VPC through the attachment, not VpcId
    FILTER_ALIASES = {
        SubResourceCategory.INTERNET_GATEWAY.resource_type: {"vpc-id": "attachment.vpc-id"},
    }

    def __init__(
        self,
        region: str,
        aws_profile: Optional[str] = None,
        connect_timeout: int = 10,
        read_timeout: int = 60,
    ) -> None:
        """Initialize the provider.

        Args:
            region: AWS region to operate in
            aws_profile: AWS profile name (optional)
            connect_timeout: Client connect timeout in seconds
            read_timeout: Client read timeout in seconds
        """
        self._region = region
        self.aws_profile = aws_profile
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._clients: Dict[str, Any] = {}

    @property
    def region(self) -> str:
        return self._region

    def _client(self, service: str) -> Any:
        client = self._clients.get(service)
        if client is None:
            client = create_boto_client(
                service_name=service,
                region_name=self._region,
                profile_name=self.aws_profile,
                connect_timeout=self.connect_timeout,
                read_timeout=self.read_timeout,
            )
            self._clients.setdefault(service, client)
        return self._clients[service]

    def list_resources(
        self, resource_type: str, filters: Optional[Dict[str, List[str]]] = None
    ) -> List[Dict[str, Any]]:
        if resource_type not in self.LISTING_METHODS:
            raise ValueError(f"Unsupported resource type: {resource_type}")

        service, method, result_key = self.LISTING_METHODS[resource_type]
        logger.debug(f"Listing {resource_type} in {self._region}")

        params: Dict[str, Any] = {}
        # ELBv2 has no server-side filters; callers filter on tags afterwards
        if filters and service == "ec2":
            aliases = self.FILTER_ALIASES.get(resource_type, {})
            params["Filters"] = [
                {"Name": aliases.get(name, name), "Values": list(values)} for name, values in filters.items()
            ]

        items: List[Dict[str, Any]] = []
        try:
            paginator = self._client(service).get_paginator(method)
            for page in paginator.paginate(**params):
                items.extend(page.get(result_key, []))
        except ClientError as e:
            raise self._wrap_client_error(e, f"listing {resource_type}")
        except BotoCoreError as e:
            raise ProviderError(f"Cannot reach AWS in {self._region}: {e}", "ConnectionError")

        return [self._normalize(resource_type, item) for item in items]

    def describe_tags(self, resource_id: str) -> Dict[str, str]:
        try:
            if self._is_arn(resource_id):
                response = self._client("elbv2").describe_tags(ResourceArns=[resource_id])
                descriptions = response.get("TagDescriptions", [])
                tag_list = descriptions[0].get("Tags", []) if descriptions else []
            else:
                tag_list = []
                paginator = self._client("ec2").get_paginator("describe_tags")
                for page in paginator.paginate(Filters=[{"Name": "resource-id", "Values": [resource_id]}]):
                    tag_list.extend(page.get("Tags", []))
        except ClientError as e:
            raise self._wrap_client_error(e, f"describing tags of {resource_id}")
        except BotoCoreError as e:
            raise ProviderError(f"Cannot reach AWS in {self._region}: {e}", "ConnectionError")

        return tags_to_dict(tag_list)

    def add_tags(self, resource_ids: List[str], tags: Dict[str, str]) -> None:
        if not resource_ids or not tags:
            return

        tag_list = [{"Key": key, "Value": value} for key, value in tags.items()]
        arns = [rid for rid in resource_ids if self._is_arn(rid)]
        ec2_ids = [rid for rid in resource_ids if not self._is_arn(rid)]

        try:
            if ec2_ids:
                self._client("ec2").create_tags(Resources=ec2_ids, Tags=tag_list)
            for start in range(0, len(arns), ELB_TAGGING_BATCH):
                self._client("elbv2").add_tags(ResourceArns=arns[start : start + ELB_TAGGING_BATCH], Tags=tag_list)
        except ClientError as e:
            raise self._wrap_client_error(e, f"tagging {len(resource_ids)} resource(s)")
        except BotoCoreError as e:
            raise ProviderError(f"Cannot reach AWS in {self._region}: {e}", "ConnectionError")

        logger.debug(f"Tagged {len(resource_ids)} resource(s) in {self._region} with {sorted(tags)}")

    def delete_resource(self, resource_type: str, resource_id: str, parent_id: Optional[str] = None) -> None:
        if resource_type not in self.DELETION_METHODS:
            raise ValueError(f"Unsupported resource type: {resource_type}")

        service, method, id_field = self.DELETION_METHODS[resource_type]
        client = self._client(service)

        try:
            # Attached gateways cannot be deleted
            if resource_type == SubResourceCategory.INTERNET_GATEWAY.resource_type and parent_id:
                client.detach_internet_gateway(InternetGatewayId=resource_id, VpcId=parent_id)

            getattr(client, method)(**{id_field: resource_id})

        except ClientError as e:
            error = self._wrap_client_error(e, f"deleting {resource_type} {resource_id}")
            if error.error_code in NOT_FOUND_ERROR_CODES:
                logger.info(f"Resource {resource_id} already deleted")
                return
            raise error
        except BotoCoreError as e:
            raise ProviderError(f"Cannot reach AWS in {self._region}: {e}", "ConnectionError")

    def _wrap_client_error(self, error: ClientError, action: str) -> ProviderError:
        error_code = error.response.get("Error", {}).get("Code", "Unknown")
        error_message = error.response.get("Error", {}).get("Message", str(error))
        return ProviderError(f"Error {action} in {self._region}: {error_message}", error_code)

    @staticmethod
    def _is_arn(resource_id: str) -> bool:
        return resource_id.startswith("arn:")

    def _normalize(self, resource_type: str, item: Dict[str, Any]) -> Dict[str, Any]:
        """Map a raw AWS description onto the provider resource dictionary."""
        if resource_type == LOAD_BALANCER_TYPE:
            return {
                "resource_id": item["LoadBalancerArn"],
                "name": item.get("LoadBalancerName", item["LoadBalancerArn"]),
                "status": item.get("State", {}).get("Code", "unknown"),
                "created_at": item.get("CreatedTime"),
                "tags": None,
                "parent_id": item.get("VpcId"),
                "default": False,
            }

        tags = tags_to_dict(item.get("Tags"))

        if resource_type == VPC_TYPE:
            resource_id = item["VpcId"]
            parent_id = None
            is_default = item.get("IsDefault", False)
        elif resource_type == SubResourceCategory.SECURITY_GROUP.resource_type:
            resource_id = item["GroupId"]
            parent_id = item.get("VpcId")
            is_default = item.get("GroupName") == "default"
        elif resource_type == SubResourceCategory.INTERNET_GATEWAY.resource_type:
            resource_id = item["InternetGatewayId"]
            attachments = item.get("Attachments", [])
            parent_id = attachments[0].get("VpcId") if attachments else None
            is_default = False
        elif resource_type == SubResourceCategory.SUBNET.resource_type:
            resource_id = item["SubnetId"]
            parent_id = item.get("VpcId")
            is_default = False
        else:
            resource_id = item["RouteTableId"]
            parent_id = item.get("VpcId")
            is_default = any(assoc.get("Main", False) for assoc in item.get("Associations", []))

        return {
            "resource_id": resource_id,
            "name": tags.get("Name", resource_id),
            "status": item.get("State", "available"),
            "created_at": None,
            "tags": tags,
            "parent_id": parent_id,
            "default": is_default,
        }
