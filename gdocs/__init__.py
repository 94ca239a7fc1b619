"""
Google Docs MCP Integration

This module provides MCP tools for index-addressed editing of Google Docs.
"""
