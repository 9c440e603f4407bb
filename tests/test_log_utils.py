"""Tests for logging helpers."""

import logging

import pytest

from openapi_tools.log_utils import REDACTED, redact_arguments
from openapi_tools.models import Endpoint, Parameter
from openapi_tools.tool_compiler import Tool
from openapi_tools.tool_logger import log_tools


class TestRedaction:
    """Test secret redaction in logged arguments"""

    @pytest.mark.unit
    def test_secret_keys_redacted(self):
        """Test that secret-looking keys are redacted"""
        arguments = {"Authorization": "Bearer x", "apiKey": "k", "password": "p", "sku": "X1"}

        assert redact_arguments(arguments) == {"Authorization": REDACTED, "apiKey": REDACTED, "password": REDACTED, "sku": "X1"}

    @pytest.mark.unit
    def test_nested_values(self):
        """Test that nested secrets are redacted"""
        arguments = {"items": [{"token": "t", "qty": 1}], "meta": {"client_secret": "s"}}

        assert redact_arguments(arguments) == {"items": [{"token": REDACTED, "qty": 1}], "meta": {"client_secret": REDACTED}}

    @pytest.mark.unit
    def test_original_untouched(self):
        """Test that redaction does not modify the input"""
        arguments = {"token": "t"}
        redact_arguments(arguments)
        assert arguments == {"token": "t"}


class TestToolLogger:
    """Test the loaded-tool catalogue log"""

    @pytest.mark.unit
    def test_logs_tool_details_at_debug(self, loaded_shop, caplog):
        """Test that tool details are logged at DEBUG"""
        loader, endpoints = loaded_shop
        endpoint = endpoints[0]
        tool = Tool(name="shop-users-get_user", description="d", summary="s", endpoint=endpoint, input_schema={}, function=None)

        with caplog.at_level(logging.DEBUG, logger="openapi_tools.tool_logger"):
            log_tools([tool], loader)

        assert "1 tools loaded" in caplog.text
        assert "Name: shop-users-get_user" in caplog.text
        assert "🎯 Controller: users" in caplog.messages
        assert "GET https://shop.example.com/api/users/{id}" in caplog.text
        assert "Path parameters" in caplog.text

    @pytest.mark.unit
    def test_summary_only_at_info(self, loaded_shop, caplog):
        """Test that only the tool count is logged at INFO"""
        loader, endpoints = loaded_shop
        endpoint = Endpoint(
            operation_id="x", method="get", path="/x", base_url="http://h", project="shop", parameters=[Parameter(name="q", location="query")]
        )
        tool = Tool(name="t", description="d", summary="s", endpoint=endpoint, input_schema={}, function=None)

        with caplog.at_level(logging.INFO, logger="openapi_tools.tool_logger"):
            log_tools([tool], loader)

        assert "1 tools loaded" in caplog.text
        assert "Name: t" not in caplog.text

    @pytest.mark.unit
    def test_no_tools(self, caplog):
        """Test logging when no tools were loaded"""
        with caplog.at_level(logging.INFO, logger="openapi_tools.tool_logger"):
            log_tools([], loader=None)

        assert "No dynamic tools" in caplog.text
