"""Jira task allocation endpoint."""

from fastapi import APIRouter, Depends

from opsdash.api.dependencies import get_jira_client
from opsdash.clients.jira_client import JiraClient

router = APIRouter(prefix="/api/jira", tags=["jira"])


@router.get("/tasks")
async def tasks(client: JiraClient = Depends(get_jira_client)):
    return (await client.get_tasks()).to_response()
