from fastapi import Request

from maestro.services.registry import CoachRegistry


def get_registry(request: Request) -> CoachRegistry:
    return request.app.state.registry
