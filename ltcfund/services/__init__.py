"""Service layer: vendor clients and donation/stat workflows."""
