import pytest
from botocore.exceptions import ClientError

from kubestack.aws.images import ImageQuery, default_selector, image_volume_size, select_volume_size
from kubestack.config.models import ImageCatalog, ImageEntry
from kubestack.errors import ImageNotFoundError, VolumeSizeError


@pytest.fixture
def catalog():
    return ImageCatalog(
        default=[
            ImageEntry(region="us-east-1", image_id="ami-any"),
            ImageEntry(region="us-east-1", image_id="ami-129", kubernetes_version="1.29"),
            ImageEntry(region="eu-west-1", image_id="ami-eu"),
        ],
        gpu=[ImageEntry(region="us-east-1", image_id="ami-gpu")],
        arm=[ImageEntry(region="us-east-1", image_id="ami-arm")],
    )


def _query(instance_type="t3.medium", region="us-east-1", version="1.29.4", **kw):
    return ImageQuery(region=region, instance_type=instance_type, kubernetes_version=version, **kw)


def test_version_pinned_image_wins(catalog):
    assert default_selector(catalog).select(_query()) == "ami-129"


def test_unpinned_image_for_other_versions(catalog):
    assert default_selector(catalog).select(_query(version="1.30.1")) == "ami-any"


def test_gpu_instances_use_gpu_images(catalog):
    assert default_selector(catalog).select(_query(instance_type="p3.2xlarge")) == "ami-gpu"


def test_gpu_instance_falls_back_to_default_list(catalog):
    assert default_selector(catalog).select(_query(instance_type="g4dn.xlarge", region="eu-west-1")) == "ami-eu"


def test_arm_instances_use_arm_images(catalog):
    assert default_selector(catalog).select(_query(instance_type="m6g.large")) == "ami-arm"
    assert default_selector(catalog).select(_query(instance_type="t4g.small")) == "ami-arm"


def test_arm_instance_never_gets_an_x86_image(catalog):
    with pytest.raises(ImageNotFoundError):
        default_selector(catalog).select(_query(instance_type="c6g.xlarge", region="eu-west-1"))


@pytest.mark.parametrize(
    "instance_type,expected",
    [
        ("t3.medium", "ami-0281494f7c4eb37d1"),
        ("g4dn.xlarge", "ami-03b85ddc5b923bb9f"),
        ("m6g.large", "ami-05179e1815b238699"),
    ],
)
def test_builtin_catalog(instance_type, expected):
    selector = default_selector(ImageCatalog())
    assert selector.select(_query(instance_type=instance_type, version="1.22.6")) == expected


def test_builtin_catalog_has_no_image_for_unknown_versions():
    with pytest.raises(ImageNotFoundError):
        default_selector(ImageCatalog()).select(_query(version="1.30.1"))


def test_no_image_names_the_query(catalog):
    with pytest.raises(ImageNotFoundError) as err:
        default_selector(catalog).select(_query(region="ap-south-1"))
    assert "region=ap-south-1" in str(err.value)
    assert err.value.final


def test_os_and_runtime_must_match(catalog):
    with pytest.raises(ImageNotFoundError):
        default_selector(catalog).select(_query(os="centos"))


@pytest.mark.parametrize(
    "explicit,default,fallback,image,expected",
    [
        (100, 0, 50, 30, 100),
        (0, 80, 50, 30, 80),
        (0, 0, 50, 30, 50),
        (0, 0, 50, 70, 70),
    ],
)
def test_volume_size(explicit, default, fallback, image, expected):
    assert select_volume_size(explicit=explicit, default=default, fallback=fallback, image_size=image) == expected


def test_explicit_volume_smaller_than_image():
    with pytest.raises(VolumeSizeError) as err:
        select_volume_size(explicit=20, default=0, fallback=50, image_size=30)
    assert "explicitly set" in str(err.value)
    assert err.value.final


def test_default_volume_smaller_than_image():
    with pytest.raises(VolumeSizeError) as err:
        select_volume_size(explicit=0, default=20, fallback=50, image_size=30)
    assert "default configured" in str(err.value)


class FakeEc2:
    def __init__(self, images=None, error=None):
        self.images = images or []
        self.error = error

    def describe_images(self, ImageIds):
        if self.error:
            raise ClientError({"Error": {"Code": self.error, "Message": "nope"}}, "DescribeImages")
        return {"Images": self.images}


def test_image_volume_size_reads_root_device():
    ec2 = FakeEc2([{
        "RootDeviceName": "/dev/sda1",
        "BlockDeviceMappings": [
            {"DeviceName": "/dev/sdb", "Ebs": {"VolumeSize": 100}},
            {"DeviceName": "/dev/sda1", "Ebs": {"VolumeSize": 30}},
        ],
    }])
    assert image_volume_size(ec2, "ami-1") == 30


def test_image_volume_size_unknown_image():
    with pytest.raises(ImageNotFoundError):
        image_volume_size(FakeEc2(error="InvalidAMIID.NotFound"), "ami-1")
    with pytest.raises(ImageNotFoundError):
        image_volume_size(FakeEc2(), "ami-1")
