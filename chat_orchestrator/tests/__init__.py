"""Test suite for chat_orchestrator."""
