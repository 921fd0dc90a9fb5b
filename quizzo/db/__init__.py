"""Relational store access: engine/session helpers and ORM models."""
