"""Game lifecycle routes: create, configure, play, restart."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, status

from greenfarm.dependencies import get_registry
from greenfarm.schemas.api import ActionRequest, ActionResponse, HistoryRead, RoundOutcomeRead
from greenfarm.schemas.game import GameConfiguration, GameSnapshot
from greenfarm.services.game_registry import GameRegistry
from greenfarm.services.game_state import ActionRejectedError, InvalidTransitionError, OrchestrationError

router = APIRouter(prefix="/games", tags=["games"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, (InvalidTransitionError, ActionRejectedError)):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
	if isinstance(exc, OrchestrationError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected game engine failure",
	)


@router.post("", response_model=GameSnapshot, status_code=status.HTTP_201_CREATED)
async def create_game(registry: GameRegistry = Depends(get_registry)) -> GameSnapshot:
	return registry.create().snapshot()


@router.get("/{game_id}", response_model=GameSnapshot)
async def get_game(game_id: uuid.UUID, registry: GameRegistry = Depends(get_registry)) -> GameSnapshot:
	try:
		return registry.get(game_id).snapshot()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_game(game_id: uuid.UUID, registry: GameRegistry = Depends(get_registry)) -> None:
	try:
		registry.remove(game_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{game_id}/tutorial", response_model=GameSnapshot)
async def acknowledge_tutorial(game_id: uuid.UUID, registry: GameRegistry = Depends(get_registry)) -> GameSnapshot:
	try:
		return registry.get(game_id).acknowledge_tutorial()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{game_id}/start", response_model=GameSnapshot)
async def start_game(
	game_id: uuid.UUID,
	payload: GameConfiguration | None = Body(default=None),
	registry: GameRegistry = Depends(get_registry),
) -> GameSnapshot:
	try:
		return await registry.get(game_id).start_game(payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{game_id}/actions", response_model=ActionResponse)
async def submit_action(
	game_id: uuid.UUID,
	payload: ActionRequest,
	registry: GameRegistry = Depends(get_registry),
) -> ActionResponse:
	try:
		controller = registry.get(game_id)
		result = await controller.submit_action(payload.action, payload.scenario_data)
	except Exception as exc:
		raise _map_error(exc) from exc

	return ActionResponse(
		outcome=RoundOutcomeRead(
			round=result.entry.round,
			action=result.entry.action,
			narrative=result.entry.outcome.narrative,
			updated_stats=result.entry.outcome.updated_stats,
			terminal=result.terminal,
		),
		game=controller.snapshot(),
	)


@router.post("/{game_id}/scenario/retry", response_model=GameSnapshot)
async def retry_scenario(game_id: uuid.UUID, registry: GameRegistry = Depends(get_registry)) -> GameSnapshot:
	try:
		return await registry.get(game_id).retry_scenario()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{game_id}/restart", response_model=GameSnapshot)
async def restart_game(game_id: uuid.UUID, registry: GameRegistry = Depends(get_registry)) -> GameSnapshot:
	try:
		return registry.get(game_id).restart()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{game_id}/history", response_model=HistoryRead)
async def get_history(game_id: uuid.UUID, registry: GameRegistry = Depends(get_registry)) -> HistoryRead:
	try:
		controller = registry.get(game_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return HistoryRead(game_id=str(controller.game_id), entries=list(controller.history))
