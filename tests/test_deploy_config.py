from smart_contracts.vehicle_registry.deploy_config import constructor_addresses_from_env


def test_constructor_addresses_from_env(monkeypatch):
    monkeypatch.setenv("CONSTRUCTOR_ADDRESSES", " ADDR1, ,ADDR2,")
    assert constructor_addresses_from_env() == ["ADDR1", "ADDR2"]


def test_no_constructor_addresses(monkeypatch):
    monkeypatch.delenv("CONSTRUCTOR_ADDRESSES", raising=False)
    assert constructor_addresses_from_env() == []
