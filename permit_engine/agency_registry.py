"""
Agency & Permit Registry

Static registry of the agencies that issue permits for the three workflow
tracks and of every permit kind the engine can determine.

Rules may only reference permits and agencies registered here; the rule set
is validated against this registry when it is built.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List, FrozenSet, Tuple

from .permit_model import PermitKind, WorkflowTrack


# -----------------------------------------------------------------------------
# Submission Method Constants
# -----------------------------------------------------------------------------
SUBMIT_EMAIL = "email"
SUBMIT_ONLINE = "online"
SUBMIT_IN_PERSON = "in_person"


@dataclass(frozen=True)
class Agency:
    """A permitting agency and its contact details."""
    agency_id: str
    name: str
    department: str
    email: str
    phone: str
    website: str
    address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agency_id": self.agency_id,
            "name": self.name,
            "department": self.department,
            "email": self.email,
            "phone": self.phone,
            "website": self.website,
            "address": self.address,
        }


@dataclass(frozen=True)
class PermitInfo:
    """Static metadata for one permit kind."""
    permit: str  # PermitKind value
    name: str
    agency_id: str
    tracks: FrozenSet[str]
    regulatory_basis: str
    submit_method: str
    estimated_fee: Optional[str] = None
    processing_time: Optional[str] = None
    portal_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permit": self.permit,
            "name": self.name,
            "agency_id": self.agency_id,
            "tracks": sorted(self.tracks),
            "regulatory_basis": self.regulatory_basis,
            "submit_method": self.submit_method,
            "estimated_fee": self.estimated_fee,
            "processing_time": self.processing_time,
            "portal_url": self.portal_url,
        }


# -----------------------------------------------------------------------------
# Agencies
# -----------------------------------------------------------------------------
AGENCY_CWA = "cwa"
AGENCY_BONNEY_LAKE = "bonney_lake"
AGENCY_PIERCE_COUNTY = "pierce_county"
AGENCY_WDFW = "wdfw"
AGENCY_USACE = "usace"
AGENCY_ECOLOGY = "ecology"
AGENCY_LNI = "lni"
AGENCY_TPCHD = "tpchd"
AGENCY_PSE = "pse"

_AGENCIES: Tuple[Agency, ...] = (
    Agency(
        agency_id=AGENCY_CWA,
        name="Cascade Water Alliance",
        department="Real Estate / License Program",
        email="laketapps@cascadewater.org",
        phone="(425) 453-0930",
        website="https://cascadewater.org/lake-tapps/licenses-permits",
        address="520 112th Ave NE, Suite 400, Bellevue, WA 98004",
    ),
    Agency(
        agency_id=AGENCY_BONNEY_LAKE,
        name="City of Bonney Lake",
        department="Community Development",
        email="permits@ci.bonney-lake.wa.us",
        phone="(253) 447-4356",
        website="https://www.ci.bonney-lake.wa.us",
        address="9002 Main St E, Bonney Lake, WA 98391",
    ),
    Agency(
        agency_id=AGENCY_PIERCE_COUNTY,
        name="Pierce County",
        department="Planning and Public Works",
        email="pcpermit@piercecountywa.gov",
        phone="(253) 798-7250",
        website="https://www.piercecountywa.gov/permits",
        address="2401 S 35th St, Tacoma, WA 98409",
    ),
    Agency(
        agency_id=AGENCY_WDFW,
        name="WA Dept of Fish & Wildlife",
        department="Habitat Program - HPA",
        email="HPAapplications@dfw.wa.gov",
        phone="(360) 902-2534",
        website="https://wdfw.wa.gov/licenses/environmental/hpa",
        address="600 Capitol Way N, Olympia, WA 98501",
    ),
    Agency(
        agency_id=AGENCY_USACE,
        name="US Army Corps of Engineers",
        department="Seattle District - Regulatory Branch",
        email="NWS-Regulatory@usace.army.mil",
        phone="(206) 764-3495",
        website="https://www.nws.usace.army.mil/Missions/Regulatory/",
        address="4735 E Marginal Way S, Seattle, WA 98134",
    ),
    Agency(
        agency_id=AGENCY_ECOLOGY,
        name="WA Dept of Ecology",
        department="Water Quality Program",
        email="ecyrefedpermits@ecy.wa.gov",
        phone="(360) 407-6600",
        website="https://ecology.wa.gov/regulations-permits",
        address="300 Desmond Dr SE, Lacey, WA 98503",
    ),
    Agency(
        agency_id=AGENCY_LNI,
        name="WA Dept of Labor & Industries",
        department="Electrical Section",
        email="electricalprogram@lni.wa.gov",
        phone="(800) 547-8367",
        website="https://lni.wa.gov/licensing-permits/electrical",
        address="7273 Linderson Way SW, Tumwater, WA 98501",
    ),
    Agency(
        agency_id=AGENCY_TPCHD,
        name="Tacoma-Pierce County Health Dept",
        department="Environmental Health - On-Site Sewage",
        email="osshelpdesk@tpchd.org",
        phone="(253) 798-6470",
        website="https://www.tpchd.org/healthy-places/sewage-septic",
        address="3629 S D St, Tacoma, WA 98418",
    ),
    Agency(
        agency_id=AGENCY_PSE,
        name="Puget Sound Energy",
        department="Net Metering / Interconnection",
        email="CustomerCare@pse.com",
        phone="(888) 225-5773",
        website="https://www.pse.com/green-options/renewable-energy-programs/net-metering",
    ),
)

AGENCY_REGISTRY: Dict[str, Agency] = {a.agency_id: a for a in _AGENCIES}


# -----------------------------------------------------------------------------
# Permits
# -----------------------------------------------------------------------------
_WATERFRONT = frozenset({WorkflowTrack.WATERFRONT.value})
_SOLAR = frozenset({WorkflowTrack.SOLAR.value})
_ADU = frozenset({WorkflowTrack.ADU.value})
_ALL_TRACKS = frozenset(t.value for t in WorkflowTrack)

_PERMITS: Tuple[PermitInfo, ...] = (
    PermitInfo(
        permit=PermitKind.CWA_LICENSE.value,
        name="CWA License Application",
        agency_id=AGENCY_CWA,
        tracks=_WATERFRONT,
        regulatory_basis="CWA License Agreement - all waterfront improvements on CWA property require a license",
        submit_method=SUBMIT_EMAIL,
        estimated_fee="$200-500 application fee",
        processing_time="2-4 weeks",
    ),
    PermitInfo(
        permit=PermitKind.SHORELINE_EXEMPTION.value,
        name="Shoreline Exemption",
        agency_id=AGENCY_BONNEY_LAKE,
        tracks=_WATERFRONT,
        regulatory_basis="WAC 173-27-040 - Exemptions from the Substantial Development Permit",
        submit_method=SUBMIT_ONLINE,
        estimated_fee="$50-150",
        processing_time="1-2 weeks",
        portal_url="https://www.cobl.us/community-development/permits",
    ),
    PermitInfo(
        permit=PermitKind.SHORELINE_SUBSTANTIAL.value,
        name="Shoreline Substantial Development Permit",
        agency_id=AGENCY_BONNEY_LAKE,
        tracks=_WATERFRONT,
        regulatory_basis="RCW 90.58 - Shoreline Management Act; WAC 173-27-040",
        submit_method=SUBMIT_ONLINE,
        estimated_fee="$500-2,000",
        processing_time="4-12 weeks",
        portal_url="https://www.cobl.us/community-development/permits",
    ),
    PermitInfo(
        permit=PermitKind.SHORELINE_CONDITIONAL.value,
        name="Shoreline Conditional Use Permit",
        agency_id=AGENCY_BONNEY_LAKE,
        tracks=_WATERFRONT,
        regulatory_basis="WAC 173-27-160 - Conditional use permits",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.SHORELINE_VARIANCE.value,
        name="Shoreline Variance",
        agency_id=AGENCY_BONNEY_LAKE,
        tracks=_WATERFRONT,
        regulatory_basis="WAC 173-27-170 - Variance permits",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.BUILDING_PERMIT.value,
        name="Building Permit (Bonney Lake)",
        agency_id=AGENCY_BONNEY_LAKE,
        tracks=_WATERFRONT,
        regulatory_basis="International Building Code as adopted locally",
        submit_method=SUBMIT_IN_PERSON,
        estimated_fee="Based on project valuation",
        processing_time="2-4 weeks",
    ),
    PermitInfo(
        permit=PermitKind.PIERCE_BUILDING_PERMIT.value,
        name="Building Permit (Pierce County)",
        agency_id=AGENCY_PIERCE_COUNTY,
        tracks=_WATERFRONT,
        regulatory_basis="International Building Code as adopted by Pierce County",
        submit_method=SUBMIT_ONLINE,
        estimated_fee="Based on project valuation",
    ),
    PermitInfo(
        permit=PermitKind.HPA.value,
        name="Hydraulic Project Approval (HPA)",
        agency_id=AGENCY_WDFW,
        tracks=_WATERFRONT,
        regulatory_basis="RCW 77.55 - Hydraulic Code",
        submit_method=SUBMIT_ONLINE,
        estimated_fee="$0-1,500 (based on project value)",
        processing_time="2-8 weeks (expedited available)",
        portal_url="https://apps.wdfw.wa.gov/hpaapps/",
    ),
    PermitInfo(
        permit=PermitKind.SECTION_10.value,
        name="Army Corps Section 10 / JARPA",
        agency_id=AGENCY_USACE,
        tracks=_WATERFRONT,
        regulatory_basis="Section 10 of the Rivers and Harbors Act of 1899",
        submit_method=SUBMIT_ONLINE,
        estimated_fee="$0-100 (Nationwide Permit) or $10-100 (Individual Permit)",
        processing_time="2-6 months",
        portal_url="https://www.nws.usace.army.mil/Missions/Civil-Works/Regulatory/Permit-Info/",
    ),
    PermitInfo(
        permit=PermitKind.SECTION_404.value,
        name="Army Corps Section 404 (Dredge/Fill)",
        agency_id=AGENCY_USACE,
        tracks=_WATERFRONT,
        regulatory_basis="Section 404 of the Clean Water Act",
        submit_method=SUBMIT_EMAIL,
        processing_time="2-6 months",
    ),
    PermitInfo(
        permit=PermitKind.WATER_QUALITY_401.value,
        name="Water Quality 401 Certification",
        agency_id=AGENCY_ECOLOGY,
        tracks=_WATERFRONT,
        regulatory_basis="Section 401 of the Clean Water Act",
        submit_method=SUBMIT_ONLINE,
        portal_url="https://ecology.wa.gov/regulations-permits/permits-certifications/401-water-quality-certification",
    ),
    PermitInfo(
        permit=PermitKind.LNI_ELECTRICAL_PERMIT.value,
        name="L&I Electrical Permit",
        agency_id=AGENCY_LNI,
        tracks=_ALL_TRACKS,
        regulatory_basis="RCW 19.28 - Electrical installations",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.SOLAR_BUILDING_PERMIT.value,
        name="Solar Building Permit",
        agency_id=AGENCY_PIERCE_COUNTY,
        tracks=_SOLAR,
        regulatory_basis="International Residential Code R324 - Solar energy systems",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.UTILITY_INTERCONNECTION.value,
        name="Utility Interconnection",
        agency_id=AGENCY_PSE,
        tracks=_SOLAR,
        regulatory_basis="RCW 80.60 - Net metering of electricity",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.ADU_BUILDING_PERMIT.value,
        name="ADU Building Permit",
        agency_id=AGENCY_PIERCE_COUNTY,
        tracks=_ADU,
        regulatory_basis="PCC 17C.30.040 - ADUs are not exempt from building permit",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.PLANNING_APPROVAL.value,
        name="Planning Approval",
        agency_id=AGENCY_PIERCE_COUNTY,
        tracks=_ADU,
        regulatory_basis="PCC 18A.37.120 - Accessory dwelling units",
        submit_method=SUBMIT_ONLINE,
    ),
    PermitInfo(
        permit=PermitKind.SEPTIC_PERMIT.value,
        name="Septic Permit",
        agency_id=AGENCY_TPCHD,
        tracks=_ADU,
        regulatory_basis="WAC 246-272A - On-site sewage systems",
        submit_method=SUBMIT_IN_PERSON,
    ),
    PermitInfo(
        permit=PermitKind.ADU_SHORELINE_PERMIT.value,
        name="ADU Shoreline Permit",
        agency_id=AGENCY_BONNEY_LAKE,
        tracks=_ADU,
        regulatory_basis="RCW 90.58 - Shoreline Management Act",
        submit_method=SUBMIT_IN_PERSON,
    ),
)

PERMIT_REGISTRY: Dict[str, PermitInfo] = {p.permit: p for p in _PERMITS}


# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------
def get_agency(agency_id: str) -> Optional[Agency]:
    return AGENCY_REGISTRY.get(agency_id)


def get_permit_info(permit: str) -> Optional[PermitInfo]:
    return PERMIT_REGISTRY.get(permit)


def agency_owns_permit(agency_id: str, permit: str) -> bool:
    """Check that a permit is issued by the given agency."""
    info = PERMIT_REGISTRY.get(permit)
    return info is not None and info.agency_id == agency_id


def permit_display_name(permit: str) -> str:
    """Human-readable permit name, falling back to the title-cased id."""
    info = PERMIT_REGISTRY.get(permit)
    if info is not None:
        return info.name
    return permit.replace("_", " ").title()


def get_agency_contacts(summary) -> List[Agency]:
    """
    Agencies that own at least one permit in a summary.

    Order follows summary.by_agency, which feeds the agency contact
    reference document.
    """
    contacts = []
    for group in summary.by_agency:
        agency = AGENCY_REGISTRY.get(group.agency_id)
        if agency is not None:
            contacts.append(agency)
    return contacts
