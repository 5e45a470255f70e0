# Workers for processing video jobs

from listingreel.workers.dispatch import dispatch_generations
from listingreel.workers.pipeline import PipelineServices, VideoPipeline, default_services
from listingreel.workers.poller import poll_clips, poll_render

__all__ = [
    "dispatch_generations",
    "PipelineServices",
    "VideoPipeline",
    "default_services",
    "poll_clips",
    "poll_render",
]
