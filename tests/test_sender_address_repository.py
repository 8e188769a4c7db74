"""
Tests for sender address persistence.
"""
from shipment_manager.models.sender_address import SenderAddress


def make_address(**overrides) -> SenderAddress:
    values = dict(
        short_name="Varna Port",
        sender_name="Test Store Ltd",
        country_code="BG",
        city="Varna",
        is_default=False,
    )
    values.update(overrides)
    return SenderAddress(**values)


class TestSenderAddressRepository:
    def test_empty_store(self, sender_repository):
        assert sender_repository.get_count() == 0
        assert sender_repository.find_default_address() is None
        assert sender_repository.find_one_by_id("missing") is None

    def test_save_assigns_identity(self, sender_repository):
        saved = sender_repository.save(make_address())

        assert len(saved.id) == 36
        assert saved.created_at is not None
        assert sender_repository.get_count() == 1

    def test_find_by_id(self, sender_repository, sender_address):
        other = sender_repository.save(make_address())

        assert sender_repository.find_one_by_id(other.id).city == "Varna"
        assert sender_repository.find_one_by_id("sender-1") is sender_address

    def test_find_default(self, sender_repository, sender_address):
        sender_repository.save(make_address())

        assert sender_repository.find_default_address().id == "sender-1"

    def test_identities_are_unique(self, sender_repository):
        assert sender_repository.next_identity() != sender_repository.next_identity()
