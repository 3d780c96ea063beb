"""Tests for the exception hierarchy."""

import httpx
import pytest

from hateoas_resource.http.fetcher import problem_from_response
from hateoas_resource.utils.exceptions import (
    ActionNotFoundError,
    ActionValidationError,
    AmbiguousActionError,
    FollowError,
    HateoasError,
    HttpError,
    Problem,
    RelationNotFoundError,
    UnsupportedContentTypeError,
)

REQUEST = httpx.Request("GET", "https://api.example.com/orders/1")


class TestHttpErrors:
    """Test HttpError and Problem."""

    def test_http_error_message_and_status(self):
        """Test HttpError message and status."""
        response = httpx.Response(404, request=REQUEST)
        error = HttpError(response)

        assert str(error) == "HTTP error 404"
        assert error.status == 404
        assert error.response is response
        assert isinstance(error, HateoasError)

    def test_problem_fields(self):
        """Test Problem fields."""
        response = httpx.Response(409, request=REQUEST)
        problem = Problem(
            response,
            {
                "type": "https://example.com/probs/conflict",
                "title": "Version conflict",
                "detail": "The order was changed",
                "instance": "/orders/1",
            },
        )

        assert str(problem) == "HTTP Error 409: Version conflict"
        assert problem.type == "https://example.com/probs/conflict"
        assert problem.detail == "The order was changed"
        assert problem.instance == "/orders/1"
        assert problem.status == 409
        assert isinstance(problem, HttpError)

    def test_problem_defaults(self):
        """Test that type defaults to about:blank and title to the reason phrase."""
        problem = Problem(httpx.Response(404, request=REQUEST), {})

        assert problem.type == "about:blank"
        assert problem.body["status"] == 404
        assert str(problem) == "HTTP Error 404: Not Found"

    @pytest.mark.asyncio
    async def test_problem_from_problem_json(self):
        """Test parsing a problem+json response."""
        response = httpx.Response(
            400,
            json={"title": "Bad input"},
            headers={"Content-Type": "application/problem+json"},
            request=REQUEST,
        )

        error = await problem_from_response(response)

        assert isinstance(error, Problem)
        assert error.title == "Bad input"

    @pytest.mark.asyncio
    async def test_problem_from_plain_response(self):
        """Test a plain error response."""
        response = httpx.Response(500, text="boom", request=REQUEST)

        error = await problem_from_response(response)

        assert type(error) is HttpError
        assert error.response.text == "boom"

    @pytest.mark.asyncio
    async def test_unparsable_problem_body_degrades_to_http_error(self):
        """Test a broken problem body gives HttpError."""
        response = httpx.Response(
            400,
            content=b"not json",
            headers={"Content-Type": "application/problem+json"},
            request=REQUEST,
        )

        error = await problem_from_response(response)

        assert type(error) is HttpError


class TestNavigationErrors:
    """Test navigation and action errors."""

    def test_relation_not_found(self):
        """Test RelationNotFoundError message."""
        error = RelationNotFoundError("author", "https://api.example.com/posts/1")

        assert error.rel == "author"
        assert "author" in str(error)
        assert "https://api.example.com/posts/1" in str(error)

    def test_action_not_found_without_name(self):
        """Test ActionNotFoundError for the default action."""
        error = ActionNotFoundError(None)

        assert "does not define any actions" in str(error)

    def test_ambiguous_action_lists_methods(self):
        """Test AmbiguousActionError lists the methods."""
        error = AmbiguousActionError("edit", ["PATCH", "PUT"])

        assert error.methods == ["PATCH", "PUT"]
        assert "PATCH, PUT" in str(error)

    def test_unsupported_content_type(self):
        """Test UnsupportedContentTypeError message."""
        error = UnsupportedContentTypeError("text/csv")

        assert str(error) == "Serializing mimetype text/csv is not yet supported in actions"

    def test_action_validation_error_summarizes_issues(self):
        """Test ActionValidationError message."""
        error = ActionValidationError(["name: required", "age: too small"])

        assert error.issues == ["name: required", "age: too small"]
        assert "name: required; age: too small" in str(error)

    def test_follow_error(self):
        """Test FollowError message."""
        error = FollowError(200)

        assert error.status == 200
        assert "received 200" in str(error)
