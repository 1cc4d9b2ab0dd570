import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from errors import StorageAccessError
from storage import CLIENT_CONFIG, S3ExistenceProbe, make_s3_client

BUCKET = "site-assets"


@pytest.fixture
def s3():
    client = boto3.client("s3", region_name="us-east-1",
                          aws_access_key_id="testing", aws_secret_access_key="testing")
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def test_existing_key(s3):
    client, stubber = s3
    stubber.add_response("head_object", {"ContentLength": 512, "ContentType": "text/html"},
                         {"Bucket": BUCKET, "Key": "about/index.html"})

    assert S3ExistenceProbe(BUCKET, client).exists("/about/index.html") is True


@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
def test_missing_key(s3, code):
    client, stubber = s3
    stubber.add_client_error("head_object", service_error_code=code, http_status_code=404,
                             expected_params={"Bucket": BUCKET, "Key": "about/index.html"})

    assert S3ExistenceProbe(BUCKET, client).exists("/about/index.html") is False


@pytest.mark.parametrize("code,status", [
    ("403", 403),
    ("AccessDenied", 403),
    ("SlowDown", 503),
    ("InternalError", 500),
])
def test_other_client_errors_are_not_treated_as_missing(s3, code, status):
    client, stubber = s3
    stubber.add_client_error("head_object", service_error_code=code, http_status_code=status)

    with pytest.raises(StorageAccessError) as excinfo:
        S3ExistenceProbe(BUCKET, client).exists("/about/index.html")

    assert excinfo.value.code == code
    assert excinfo.value.bucket == BUCKET
    assert excinfo.value.key == "about/index.html"


def test_network_errors_are_storage_access_errors():
    class Unreachable:
        def head_object(self, **kwargs):
            raise EndpointConnectionError(endpoint_url="https://site-assets.s3.amazonaws.com")

    with pytest.raises(StorageAccessError) as excinfo:
        S3ExistenceProbe(BUCKET, Unreachable()).exists("/index.html")

    assert excinfo.value.code == "EndpointConnectionError"
    assert isinstance(excinfo.value.__cause__, EndpointConnectionError)


def test_client_is_bounded():
    client = make_s3_client("eu-west-1")

    assert client.meta.region_name == "eu-west-1"
    assert CLIENT_CONFIG.connect_timeout == 1
    assert CLIENT_CONFIG.read_timeout == 2
    assert CLIENT_CONFIG.retries["max_attempts"] == 2
