from listingreel.vendors.base import VendorClient
from listingreel.vendors.checkout import StripeCheckout
from listingreel.vendors.copywriter import ScriptWriter
from listingreel.vendors.luma import LumaClient
from listingreel.vendors.runway import RunwayClient
from listingreel.vendors.shotstack import ShotstackClient, StitchClip, build_edit
from listingreel.vendors.tts import ElevenLabsClient

__all__ = [
    "VendorClient",
    "StripeCheckout",
    "ScriptWriter",
    "LumaClient",
    "RunwayClient",
    "ShotstackClient",
    "StitchClip",
    "build_edit",
    "ElevenLabsClient",
]
