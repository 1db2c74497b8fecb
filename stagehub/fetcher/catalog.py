from stagehub.client import AzureDevOpsClient
from stagehub.const import UNNAMED_PIPELINE_NAME
from stagehub.schemas import PipelineDefinition
from stagehub.schemas.azure import Pipeline


def to_pipeline_definition(raw: Pipeline) -> PipelineDefinition:
    return PipelineDefinition(
        id=raw.id,
        name=raw.name or UNNAMED_PIPELINE_NAME,
        folder=raw.folder,
        revision=raw.revision,
        url=raw.links.web_href if raw.links else None,
    )


async def list_pipelines(
    client: AzureDevOpsClient, project_id: str
) -> list[PipelineDefinition]:
    return [to_pipeline_definition(x) for x in await client.list_pipelines(project_id)]
