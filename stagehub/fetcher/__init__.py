from stagehub.fetcher.service import PipelineService
from stagehub.fetcher.timeline import StageCorrelator, extract_stages

__all__ = ['PipelineService', 'StageCorrelator', 'extract_stages']
