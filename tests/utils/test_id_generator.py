"""
Tests for ID generation utilities.

Tests cover:
1. Note ID generation
2. Request ID generation
3. Context ID generation
"""

from pagenotes.utils import generate_context_id, generate_note_id, generate_request_id


class TestGenerateNoteId:
    """Tests for Note ID generation."""

    def test_format(self):
        """Test Note ID format: note_xxx (12 hex chars)."""
        note_id = generate_note_id()

        assert note_id.startswith("note_")
        assert len(note_id) == 17  # "note_" (5) + 12 hex chars
        assert note_id[5:].isalnum()

    def test_uniqueness(self):
        """Test that generated Note IDs are unique."""
        ids = [generate_note_id() for _ in range(1000)]
        assert len(ids) == len(set(ids))


class TestGenerateRequestId:
    """Tests for bridge request ID generation."""

    def test_format(self):
        """Test request ID format: req_xxx (12 hex chars)."""
        request_id = generate_request_id()

        assert request_id.startswith("req_")
        assert len(request_id) == 16

    def test_uniqueness(self):
        """Test that generated request IDs are unique."""
        ids = [generate_request_id() for _ in range(1000)]
        assert len(ids) == len(set(ids))


class TestGenerateContextId:
    """Tests for context ID generation."""

    def test_default_prefix(self):
        """Test the default ctx_ prefix."""
        assert generate_context_id().startswith("ctx_")

    def test_custom_prefix(self):
        """Test a custom prefix with 8 hex chars."""
        context_id = generate_context_id("popup")

        assert context_id.startswith("popup_")
        assert len(context_id) == len("popup_") + 8
