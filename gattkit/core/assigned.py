"""Bluetooth SIG assigned numbers used by schemas and the AD encoder."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag

CCCD_UUID16 = 0x2902
MAX_ADV_PAYLOAD = 31


class Flag(IntFlag):
    LimitedDiscovery = 0x01
    GeneralDiscovery = 0x02
    LE_Only = 0x04
    # Simultaneous LE and BR/EDR (controller / host)
    Bit3 = 0x08
    Bit4 = 0x10


class ADType(IntEnum):
    FLAGS = 0x01
    INCOMPLETE_16 = 0x02
    COMPLETE_16 = 0x03
    INCOMPLETE_32 = 0x04
    COMPLETE_32 = 0x05
    INCOMPLETE_128 = 0x06
    COMPLETE_128 = 0x07
    SHORTENED_LOCAL_NAME = 0x08
    COMPLETE_LOCAL_NAME = 0x09


# (width, complete) -> AD type
SERVICE_LIST_AD_TYPES: dict[tuple[int, bool], ADType] = {
    (16, False): ADType.INCOMPLETE_16,
    (16, True): ADType.COMPLETE_16,
    (32, False): ADType.INCOMPLETE_32,
    (32, True): ADType.COMPLETE_32,
    (128, False): ADType.INCOMPLETE_128,
    (128, True): ADType.COMPLETE_128,
}

SERVICE_LIST_TAGS: dict[str, tuple[int, bool]] = {
    "Incomplete16": (16, False),
    "Complete16": (16, True),
    "Incomplete32": (32, False),
    "Complete32": (32, True),
    "Incomplete128": (128, False),
    "Complete128": (128, True),
}


class SecurityMode(Enum):
    NoAccess = "NoAccess"
    Open = "Open"
    JustWorks = "JustWorks"
    Mitm = "Mitm"
    LescMitm = "LescMitm"
    Signed = "Signed"
    SignedMitm = "SignedMitm"


class BasicService(IntEnum):
    GenericAccess = 0x1800
    GenericAttribute = 0x1801
    ImmediateAlert = 0x1802
    LinkLoss = 0x1803
    TxPower = 0x1804
    CurrentTime = 0x1805
    ReferenceTimeUpdate = 0x1806
    NextDSTChange = 0x1807
    Glucose = 0x1808
    HealthThermometer = 0x1809
    DeviceInformation = 0x180A
    HeartRate = 0x180D
    PhoneAlertStatus = 0x180E
    Battery = 0x180F
    BloodPressure = 0x1810
    AlertNotification = 0x1811
    HumanInterfaceDevice = 0x1812
    ScanParameters = 0x1813
    RunningSpeedAndCadence = 0x1814
    AutomationIO = 0x1815
    CyclingSpeedAndCadence = 0x1816
    CyclingPower = 0x1818
    LocationAndNavigation = 0x1819
    EnvironmentalSensing = 0x181A
    BodyComposition = 0x181B
    UserData = 0x181C
    WeightScale = 0x181D
    BondManagement = 0x181E
    ContinuousGlucoseMonitoring = 0x181F
    InternetProtocolSupport = 0x1820
    IndoorPositioning = 0x1821
    PulseOximeter = 0x1822
    HTTPProxy = 0x1823
    TransportDiscovery = 0x1824
    ObjectTransfer = 0x1825
    FitnessMachine = 0x1826
    MeshProvisioning = 0x1827
    MeshProxy = 0x1828
    ReconnectionConfiguration = 0x1829
    InsulinDelivery = 0x183A
    BinarySensor = 0x183B
    EmergencyConfiguration = 0x183C
    AuthorizationControl = 0x183D
    PhysicalActivityMonitor = 0x183E
    ElapsedTime = 0x183F
    GenericHealthSensor = 0x1840
    AudioInputControl = 0x1843
    VolumeControl = 0x1844
    VolumeOffsetControl = 0x1845
    CoordinatedSetIdentification = 0x1846
    DeviceTime = 0x1847
    MediaControl = 0x1848
    GenericMediaControl = 0x1849
    ConstantToneExtension = 0x184A
    TelephoneBearer = 0x184B
    GenericTelephoneBearer = 0x184C
    MicrophoneControl = 0x184D
    AudioStreamControl = 0x184E
    BroadcastAudioScan = 0x184F
    PublishedAudioScan = 0x1850
    BasicAudioCapabilities = 0x1851
    BroadcastAudioAnnouncement = 0x1852
    CommonAudio = 0x1853
    HearingAccess = 0x1854
    TelephonyAndMediaAudio = 0x1855
    PublicBroadcastAnnouncement = 0x1856
    ElectronicShelfLabel = 0x1857
    GamingAudio = 0x1858
    MeshProxySolicitation = 0x1859
