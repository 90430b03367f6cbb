"""
Tests for the persistence adapters

No network: the Google Sheets store is exercised against a fake worksheet.
"""

import json

import pytest

from hamoney.services.storage import InMemoryStore, JsonFileStore, StorageError
from hamoney.services.storage.google_sheets import STORAGE_COLUMNS, GoogleSheetsStore


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the key-value store."""

    def __init__(self):
        self.rows = [list(STORAGE_COLUMNS)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append(list(values))

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.sheet = FakeWorksheet()

    def get_storage_sheet(self):
        return self.sheet


class TestInMemoryStore:
    """Tests for InMemoryStore."""

    def test_set_and_get(self):
        """Test basic round trip."""
        store = InMemoryStore()
        assert store.set("debts", [{"amount": "10.00"}]) is True
        assert store.get("debts") == [{"amount": "10.00"}]

    def test_missing_key(self):
        """Test that a missing key reads as None."""
        assert InMemoryStore().get("nothing") is None

    def test_values_are_copies(self):
        """Test that mutating a returned value does not change the store."""
        store = InMemoryStore()
        store.set("debts", [1, 2])
        store.get("debts").append(3)
        assert store.get("debts") == [1, 2]

    def test_rejects_non_json_values(self):
        """Test that only JSON values are accepted."""
        with pytest.raises(StorageError, match="not JSON-serializable"):
            InMemoryStore().set("debts", {1, 2})

    def test_prefix_and_delete(self):
        """Test key prefixing and deletion."""
        store = InMemoryStore(key_prefix="hamoney_")
        store.set("debts", [])
        assert store.keys() == ["debts"]
        assert store.delete("debts") is True
        assert store.delete("debts") is False


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_one_file_per_key(self, tmp_path):
        """Test that values land in <prefix><key>.json."""
        store = JsonFileStore(tmp_path, key_prefix="hamoney_")
        store.set("debts", [{"debtor_id": "A"}])

        path = tmp_path / "hamoney_debts.json"
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == [{"debtor_id": "A"}]
        assert store.get("debts") == [{"debtor_id": "A"}]

    def test_creates_data_dir(self, tmp_path):
        """Test that the data directory is created on first write."""
        store = JsonFileStore(tmp_path / "nested" / "data")
        store.set("payments", [])
        assert store.get("payments") == []

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        store = JsonFileStore(tmp_path)
        store.set("debts", [1])
        store.set("debts", [1, 2])
        assert store.get("debts") == [1, 2]
        assert [p.name for p in tmp_path.iterdir()] == ["hamoney_debts.json"]

    def test_missing_key(self, tmp_path):
        """Test that a missing file reads as None."""
        assert JsonFileStore(tmp_path).get("debts") is None

    def test_corrupt_file(self, tmp_path):
        """Test that unreadable JSON is a StorageError."""
        (tmp_path / "hamoney_debts.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt"):
            JsonFileStore(tmp_path).get("debts")

    @pytest.mark.parametrize("key", ["", "../debts", "a/b", ".hidden"])
    def test_invalid_keys(self, tmp_path, key):
        """Test that keys cannot escape the data directory."""
        with pytest.raises(StorageError, match="Invalid storage key"):
            JsonFileStore(tmp_path).set(key, [])

    def test_delete(self, tmp_path):
        """Test deleting a key."""
        store = JsonFileStore(tmp_path)
        store.set("debts", [])
        assert store.delete("debts") is True
        assert store.delete("debts") is False


class TestGoogleSheetsStore:
    """Tests for GoogleSheetsStore against a fake worksheet."""

    @pytest.fixture
    def client(self):
        return FakeSheetsClient()

    def test_set_appends_row(self, client):
        """Test that a new key becomes a new row."""
        store = GoogleSheetsStore(client=client, key_prefix="hamoney_")
        store.set("debts", [{"amount": "40.00"}])

        row = client.sheet.rows[1]
        assert row[0] == "hamoney_debts"
        assert json.loads(row[1]) == [{"amount": "40.00"}]
        assert row[2]

    def test_set_updates_existing_row(self, client):
        """Test that writing a key twice updates in place."""
        store = GoogleSheetsStore(client=client)
        store.set("debts", [1])
        store.set("debts", [1, 2])

        assert len(client.sheet.rows) == 2
        assert store.get("debts") == [1, 2]

    def test_get_missing(self, client):
        """Test that a missing key reads as None."""
        assert GoogleSheetsStore(client=client).get("debts") is None

    def test_corrupt_cell(self, client):
        """Test that a hand-edited cell is a StorageError."""
        client.sheet.rows.append(["debts", "{oops", ""])
        with pytest.raises(StorageError, match="Corrupt"):
            GoogleSheetsStore(client=client).get("debts")

    def test_rejects_non_json_values(self, client):
        """Test that only JSON values are accepted."""
        with pytest.raises(StorageError, match="not JSON-serializable"):
            GoogleSheetsStore(client=client).set("debts", object())

    def test_delete(self, client):
        """Test deleting a key removes its row."""
        store = GoogleSheetsStore(client=client)
        store.set("debts", [])
        store.set("payments", [])

        assert store.delete("debts") is True
        assert store.delete("debts") is False
        assert [row[0] for row in client.sheet.rows[1:]] == ["payments"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
