"""Identifier catalog: property names and evidence keys the engine understands.

Each enum member maps to the canonical token the engine expects. `Custom`
carries any other token verbatim. Nothing here is checked against the loaded
dataset; a property the dataset does not support simply reads back as no
value.
"""
from __future__ import annotations

import dataclasses
import enum
import typing as t


@dataclasses.dataclass(frozen=True)
class Custom:
    """Free-form identifier for tokens outside the catalog."""

    token: str

    def __str__(self) -> str:
        return self.token


class PropertyName(enum.Enum):
    # Device info
    DeviceId = "DeviceId"
    DeviceType = "DeviceType"
    CrawlerName = "CrawlerName"
    # Device properties
    HasTouchScreen = "HasTouchScreen"
    IsScreenFoldable = "IsScreenFoldable"
    IsSmallScreen = "IsSmallScreen"
    IsEmailBrowser = "IsEmailBrowser"
    IsEmulatingDesktop = "IsEmulatingDesktop"
    IsEmulatingDevice = "IsEmulatingDevice"
    IsWebApp = "IsWebApp"
    IsConsole = "IsConsole"
    IsEReader = "IsEReader"
    IsMediaHub = "IsMediaHub"
    IsMobile = "IsMobile"
    IsSmartWatch = "IsSmartWatch"
    IsTablet = "IsTablet"
    IsTv = "IsTv"
    IsCrawler = "IsCrawler"
    IsArtificialIntelligence = "IsArtificialIntelligence"
    # Device native info
    NativeBrand = "NativeBrand"
    NativeDevice = "NativeDevice"
    NativeModel = "NativeModel"
    NativeName = "NativeName"
    NativePlatform = "NativePlatform"

    # Browser info
    BrowserFamily = "BrowserFamily"
    BrowserName = "BrowserName"
    BrowserVendor = "BrowserVendor"
    BrowserVersion = "BrowserVersion"
    BrowserReleaseYear = "BrowserReleaseYear"
    BrowserSourceProject = "BrowserSourceProject"
    BrowserSourceProjectVersion = "BrowserSourceProjectVersion"
    BrowserRank = "BrowserRank"

    # Browser options
    Canvas = "Canvas"
    CookiesCapable = "CookiesCapable"
    CssCanvas = "CssCanvas"
    DeviceOrientation = "DeviceOrientation"
    Fetch = "Fetch"
    Fullscreen = "Fullscreen"
    GeoLocation = "GeoLocation"
    IndexedDB = "IndexedDB"
    InVRMode = "InVRMode"
    Javascript = "Javascript"
    Viewport = "Viewport"

    # Platform info
    PlatformName = "PlatformName"
    PlatformVendor = "PlatformVendor"
    PlatformVersion = "PlatformVersion"
    PlatformReleaseYear = "PlatformReleaseYear"
    PlatformRank = "PlatformRank"

    # Hardware info
    HardwareName = "HardwareName"
    HardwareVendor = "HardwareVendor"
    HardwareFamily = "HardwareFamily"
    HardwareModel = "HardwareModel"
    HardwareModelVariants = "HardwareModelVariants"
    HardwareCarrier = "HardwareCarrier"
    HardwareRank = "HardwareRank"
    OEM = "OEM"  # company that manufactures the device
    ReleaseYear = "ReleaseYear"  # release year, or first seen year when unknown
    # Hardware screen info
    BitsPerPixel = "BitsPerPixel"
    PixelRatio = "PixelRatio"
    ScreenInchesDiagonal = "ScreenInchesDiagonal"
    ScreenPixelsHeight = "ScreenPixelsHeight"
    ScreenPixelsPhysicalHeight = "ScreenPixelsPhysicalHeight"
    ScreenPixelsPhysicalWidth = "ScreenPixelsPhysicalWidth"
    ScreenPixelsWidth = "ScreenPixelsWidth"
    ScreenType = "ScreenType"
    # Hardware network
    RegisteredCountry = "RegisteredCountry"
    RegisteredName = "RegisteredName"
    RegisteredOwner = "RegisteredOwner"

    # Other
    Profiles = "Profiles"
    Popularity = "Popularity"  # unique client IPs the device has been seen from
    PriceBand = "PriceBand"  # recommended retail price range at release
    Difference = "Difference"  # larger means less confident; set for non-exact matches
    Drift = "Drift"  # total offset of matched substrings from expected positions
    UserAgents = "UserAgents"  # the matched User-Agents

    @property
    def token(self) -> str:
        return self.value

    @classmethod
    def from_token(cls, token: str) -> "PropertyName | Custom":
        try:
            return cls(token)
        except ValueError:
            return Custom(token)

    def __str__(self) -> str:
        return self.value


class EvidenceName(enum.Enum):
    UserAgent = "user-agent"
    SecChUa = "sec-ch-ua"
    SecChPlatform = "sec-ch-platform"
    # structured client hints
    SecChUaPlatform = "sec-ch-ua-platform"
    SecChUaPlatformVersion = "sec-ch-ua-platform-version"
    SecChUaMobile = "sec-ch-ua-mobile"
    SecChUaModel = "sec-ch-ua-model"
    SecChUaFullVersionList = "sec-ch-ua-full-version-list"
    SecChUaArch = "sec-ch-ua-arch"
    SecChUaBitness = "sec-ch-ua-bitness"

    @property
    def token(self) -> str:
        return self.value

    def with_value(self, v: str) -> tuple["EvidenceName", str]:
        return (self, v)

    @classmethod
    def from_header(cls, name: str) -> "EvidenceName | Custom":
        """Map an HTTP header name to a catalog member, case-insensitively."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            return Custom(name)

    def __str__(self) -> str:
        return self.value


PropertyIdentifier = t.Union[PropertyName, Custom, str]
EvidenceIdentifier = t.Union[EvidenceName, Custom, str]


def token_of(identifier: PropertyIdentifier | EvidenceIdentifier) -> str:
    """Return the canonical engine token for a catalog member, Custom or str."""
    if isinstance(identifier, (PropertyName, EvidenceName)):
        return identifier.value
    if isinstance(identifier, Custom):
        return identifier.token
    if isinstance(identifier, str):
        return identifier
    raise TypeError(f"unsupported identifier type: {type(identifier).__name__}")
