import pytest
from botocore.stub import Stubber

from ec2_menu.aws_api import AwsEc2Service
from ec2_menu.settings import AwsCredentials, Ec2MenuSettings


@pytest.fixture(autouse=True)
def isolated_aws_environment(monkeypatch):
    """Keep the developer's AWS profile and config out of the tests."""
    for name in (
        "AWS_PROFILE",
        "AWS_DEFAULT_PROFILE",
        "AWS_CONFIG_FILE",
        "AWS_SHARED_CREDENTIALS_FILE",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "EC2_MENU_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def credentials():
    return AwsCredentials(access_key_id="AKIATESTING", secret_access_key="testing-secret")


@pytest.fixture
def settings():
    return Ec2MenuSettings(region="us-east-1")


@pytest.fixture
def service(credentials, settings):
    return AwsEc2Service(credentials, settings)


@pytest.fixture
def stubber(service):
    with Stubber(service.client) as stub:
        yield stub
        stub.assert_no_pending_responses()

