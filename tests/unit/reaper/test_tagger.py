"""Tests for ResourceTagger."""

from __future__ import annotations

import pytest

from tests.fixtures.providers import T0, FakeProvider
from ttl_reaper.aws.provider import ProviderError
from ttl_reaper.models.resource import LOAD_BALANCER_TYPE, VPC_TYPE, LoadBalancer, SubResourceCategory
from ttl_reaper.reaper.tagger import ResourceTagger
from ttl_reaper.reaper.tags import encode_creation_date

LB_ARN = "arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/{}/abc"


def make_lb(name: str) -> LoadBalancer:
    return LoadBalancer(resource_id=LB_ARN.format(name), name=name, status="active", created_at=T0)


class TestTagResource:
    """Test suite for tag_resource()."""

    def test_writes_ttl_tag(self, provider: FakeProvider) -> None:
        """Test a resource is tagged with its TTL."""
        ResourceTagger(provider).tag_resource(LOAD_BALANCER_TYPE, LB_ARN.format("web"), 3600)

        assert provider.added_tags == [([LB_ARN.format("web")], {"ttl": "3600"})]

    def test_writes_marker_and_creation_date(self, provider: FakeProvider) -> None:
        """Test a distinct marker and creation date are written with the TTL."""
        ResourceTagger(provider, tag_name="reaper").tag_resource(VPC_TYPE, "vpc-1", 60, created_at=T0)

        assert provider.added_tags == [
            (["vpc-1"], {"ttl": "60", "reaper": "1", "creationDate": encode_creation_date(T0)})
        ]

    def test_tagging_error_propagates(self, provider: FakeProvider) -> None:
        """Test a tagging failure is raised to the caller."""
        provider.add_tags_error = ProviderError("denied", "AccessDenied")

        with pytest.raises(ProviderError):
            ResourceTagger(provider).tag_resource(VPC_TYPE, "vpc-1", 60)


class TestTagLoadBalancersForDeletion:
    """Test suite for tag_load_balancers_for_deletion()."""

    def test_tags_all_in_one_call(self, provider: FakeProvider) -> None:
        """Test every load balancer gets the marker in a single call."""
        ResourceTagger(provider).tag_load_balancers_for_deletion([make_lb("a"), make_lb("b")])

        assert provider.added_tags == [([LB_ARN.format("a"), LB_ARN.format("b")], {"ttl": "1"})]

    def test_uses_configured_marker(self, provider: FakeProvider) -> None:
        """Test the configured marker key is applied."""
        ResourceTagger(provider, tag_name="reaper").tag_load_balancers_for_deletion([make_lb("a")])

        assert provider.added_tags == [([LB_ARN.format("a")], {"reaper": "1"})]

    def test_empty_list_is_noop(self, provider: FakeProvider) -> None:
        """Test no call is made without load balancers."""
        ResourceTagger(provider).tag_load_balancers_for_deletion([])

        assert provider.added_tags == []


class TestTagVPCsForDeletion:
    """Test suite for tag_vpcs_for_deletion()."""

    def test_tags_vpc_and_sub_resources(self, provider: FakeProvider) -> None:
        """Test a cluster's VPC and its members are tagged together."""
        provider.add_vpc(
            "vpc-1",
            tags={"ClusterName": "demo"},
            security_groups=["sg-1"],
            internet_gateways=["igw-1"],
            subnets=["subnet-1"],
            route_tables=["rtb-1"],
        )
        provider.add_vpc("vpc-2", tags={"ClusterName": "other"}, subnets=["subnet-2"])

        tagged = ResourceTagger(provider).tag_vpcs_for_deletion("demo", T0, 7200)

        assert tagged == ["vpc-1", "sg-1", "igw-1", "subnet-1", "rtb-1"]
        assert provider.added_tags == [
            (tagged, {"ttl": "7200", "creationDate": encode_creation_date(T0)})
        ]

    def test_looks_up_vpcs_by_cluster_name(self, provider: FakeProvider) -> None:
        """Test VPCs are found through the ClusterName tag."""
        ResourceTagger(provider).tag_vpcs_for_deletion("demo", T0, 60)

        assert provider.list_calls == [(VPC_TYPE, {"tag:ClusterName": ["demo"]})]

    def test_no_vpc_found(self, provider: FakeProvider) -> None:
        """Test nothing is tagged when the cluster has no VPC."""
        assert ResourceTagger(provider).tag_vpcs_for_deletion("demo", T0, 60) == []
        assert provider.added_tags == []

    def test_default_members_are_not_tagged(self, provider: FakeProvider) -> None:
        """Test the default security group is left untagged."""
        provider.add_vpc("vpc-1", tags={"ClusterName": "demo"})
        provider.add_sub_resource(SubResourceCategory.SECURITY_GROUP, "sg-default", "vpc-1", default=True)

        tagged = ResourceTagger(provider).tag_vpcs_for_deletion("demo", T0, 60)

        assert tagged == ["vpc-1"]

    def test_tagging_error_propagates(self, provider: FakeProvider) -> None:
        """Test a failed tagging call is raised."""
        provider.add_vpc("vpc-1", tags={"ClusterName": "demo"})
        provider.add_tags_error = ProviderError("denied", "UnauthorizedOperation")

        with pytest.raises(ProviderError, match="denied"):
            ResourceTagger(provider).tag_vpcs_for_deletion("demo", T0, 60)

    def test_incomplete_discovery_tags_nothing(self, provider: FakeProvider) -> None:
        """Test a sub-resource category that cannot be listed aborts tagging of the cluster."""
        provider.add_vpc("vpc-1", tags={"ClusterName": "demo"}, security_groups=["sg-1"], subnets=["subnet-1"])
        provider.list_errors["AWS::EC2::Subnet"] = ProviderError("throttled", "Throttling")

        with pytest.raises(ProviderError, match="AWS::EC2::Subnet of VPC vpc-1") as excinfo:
            ResourceTagger(provider).tag_vpcs_for_deletion("demo", T0, 60)

        assert excinfo.value.error_code == "IncompleteDiscovery"
        assert provider.added_tags == []
