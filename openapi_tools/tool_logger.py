"""Readable dump of every loaded tool, written at DEBUG level after loading."""

import logging
import textwrap

from .document_loader import DocumentLoader
from .models import PARAM_LOCATIONS, Endpoint, Parameter
from .tool_compiler import Tool

logger = logging.getLogger(__name__)

_RULE = "=" * 100


def log_tools(tools: list[Tool], loader: DocumentLoader) -> None:
    if not tools:
        logger.info("No dynamic tools to log")
        return

    logger.info(f"🛠️  {len(tools)} tools loaded")
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug(_RULE)
    for index, tool in enumerate(tools, start=1):
        endpoint = tool.endpoint
        logger.debug(f"---------- Tool {index} of {len(tools)} ----------")
        logger.debug(f"🏷️  Name: {tool.name}")
        logger.debug(f"🆔 Operation ID: {endpoint.operation_id}")
        logger.debug(f"🌐 Project: {endpoint.project}")
        logger.debug(f"🎯 Controller: {endpoint.controller}")
        logger.debug(f"   {endpoint.method.upper()} {endpoint.base_url}{endpoint.path}")
        logger.debug("---------- INPUTS ----------")
        _log_parameters(endpoint.parameters)
        _log_request_body(endpoint, loader)
        logger.debug("---------- OUTPUTS ----------")
        _log_responses(endpoint, loader)
    logger.debug(_RULE)


def _log_parameters(parameters: list[Parameter]) -> None:
    if not parameters:
        logger.debug("  No input parameters defined")
        return

    for location in PARAM_LOCATIONS:
        group = [p for p in parameters if p.location == location]
        if not group:
            continue
        logger.debug(f"  📥 {location.capitalize()} parameters:")
        for p in group:
            required = "REQUIRED" if p.required else "OPTIONAL"
            logger.debug(f"     - {p.name} ({p.type}) [{required}]: {p.description or ''}")
            if p.format:
                logger.debug(f"       Format: {p.format}")
            if p.default_value is not None:
                logger.debug(f"       Default: {p.default_value}")
            if p.enum_values:
                logger.debug(f"       Enum values: {p.enum_values}")
            if p.items is not None:
                logger.debug(f"       Item type: {p.items.type}")


def _log_request_body(endpoint: Endpoint, loader: DocumentLoader) -> None:
    request_body = endpoint.request_body
    if request_body is None or not request_body.content:
        return

    logger.debug("  📦 Request body:")
    logger.debug(f"     - Required: {'yes' if request_body.required else 'no'}")
    if request_body.description:
        logger.debug(f"     - Description: {request_body.description}")
    for media_type, media in request_body.content.items():
        logger.debug(f"     - Type: `{media_type}`")
        if media.schema_ is not None:
            schema_json = loader.schema_as_json(endpoint.project, media.schema_)
            logger.debug("     - Schema:\n" + textwrap.indent(schema_json, " " * 6))


def _log_responses(endpoint: Endpoint, loader: DocumentLoader) -> None:
    if not endpoint.responses:
        logger.debug("  No responses defined")
        return

    logger.debug("  📤 Possible responses:")
    for code, response in endpoint.responses.items():
        logger.debug(f"    - `{code}`: {response.description or ''}")
        for media_type, media in response.content.items():
            if media.schema_ is not None:
                schema_json = loader.schema_as_json(endpoint.project, media.schema_)
                logger.debug(f"      - Schema (`{media_type}`):\n" + textwrap.indent(schema_json, " " * 8))
            if media.example is not None:
                logger.debug(f"      Example: {media.example}")
