from botocore.exceptions import ClientError

from kubestack.aws import keypairs


def _err(code, op):
    return ClientError({"Error": {"Code": code, "Message": ""}}, op)


class FakeEc2:
    def __init__(self, keys=()):
        self.keys = set(keys)
        self.imported = []

    def describe_key_pairs(self, KeyNames):
        if KeyNames[0] not in self.keys:
            raise _err("InvalidKeyPair.NotFound", "DescribeKeyPairs")
        return {"KeyPairs": [{"KeyName": KeyNames[0]}]}

    def import_key_pair(self, KeyName, PublicKeyMaterial):
        if KeyName in self.keys:
            raise _err("InvalidKeyPair.Duplicate", "ImportKeyPair")
        self.keys.add(KeyName)
        self.imported.append((KeyName, PublicKeyMaterial))

    def delete_key_pair(self, KeyName):
        if KeyName not in self.keys:
            raise _err("InvalidKeyPair.NotFound", "DeleteKeyPair")
        self.keys.remove(KeyName)


def test_import_once():
    ec2 = FakeEc2()
    assert keypairs.import_key(ec2, "kubestack-prod", "ssh-rsa AAAA") is True
    assert keypairs.import_key(ec2, "kubestack-prod", "ssh-rsa AAAA") is False
    assert ec2.imported == [("kubestack-prod", b"ssh-rsa AAAA")]


def test_delete_key_is_idempotent():
    ec2 = FakeEc2({"kubestack-prod"})
    keypairs.delete_key(ec2, "kubestack-prod")
    keypairs.delete_key(ec2, "kubestack-prod")
    assert not keypairs.key_exists(ec2, "kubestack-prod")


class RacingEc2(FakeEc2):
    """describe says absent, import finds a duplicate."""

    def describe_key_pairs(self, KeyNames):
        raise _err("InvalidKeyPair.NotFound", "DescribeKeyPairs")


def test_import_lost_race_is_not_an_error():
    assert keypairs.import_key(RacingEc2({"kubestack-prod"}), "kubestack-prod", "ssh-rsa AAAA") is False
