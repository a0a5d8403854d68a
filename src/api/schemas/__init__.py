"""Pydantic response schemas for the probe API"""
