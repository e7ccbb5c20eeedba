"""
Static reference data: known SA3 regions, demo addresses and demo orders.

The demo records are only served when the upstream backend is unreachable
(orders always, address search only when USE_SAMPLE_FALLBACK is enabled).
"""
from types import MappingProxyType
from typing import Mapping


def _regions(state: str, *names: str) -> dict[str, str]:
    return {name: state for name in names}


# SA3 region name -> state abbreviation
KNOWN_REGIONS: Mapping[str, str] = MappingProxyType({
    **_regions(
        "NSW",
        "Eastern Suburbs - North",
        "Eastern Suburbs - South",
        "Sydney Inner City",
        "North Sydney - Mosman",
        "Ryde",
        "Parramatta",
        "Blacktown - North",
        "Blacktown - South-West",
        "Penrith",
        "Blue Mountains",
        "Inner West",
        "Canterbury",
        "Bankstown",
        "Sutherland - Menai - Heathcote",
        "Cronulla - Miranda - Caringbah",
        "St George",
        "Strathfield - Burwood - Ashfield",
        "Canada Bay",
        "Leichhardt",
        "Marrickville - Sydenham - Petersham",
        "Hornsby",
        "Ku-ring-gai",
        "Northern Beaches",
        "Pittwater",
        "Warringah",
        "Chatswood - Lane Cove",
        "Lower Northern Sydney",
        "Newcastle",
        "Lake Macquarie - East",
        "Lake Macquarie - West",
        "Maitland",
        "Central Coast",
        "Wollongong",
    ),
    **_regions(
        "VIC",
        "Melbourne City",
        "Port Phillip",
        "Stonnington - East",
        "Stonnington - West",
        "Boroondara",
        "Yarra",
        "Darebin - South",
        "Darebin - North",
        "Banyule",
        "Manningham - East",
        "Manningham - West",
        "Whitehorse - East",
        "Whitehorse - West",
        "Monash",
        "Glen Eira",
        "Bayside",
        "Kingston",
        "Greater Dandenong",
        "Casey - North",
        "Casey - South",
        "Frankston",
        "Mornington Peninsula",
        "Knox",
        "Maroondah",
        "Yarra Ranges",
    ),
    **_regions(
        "QLD",
        "Brisbane Inner",
        "Brisbane Inner - East",
        "Brisbane Inner - North",
        "Brisbane Inner - West",
        "Brisbane - South",
        "Brisbane - East",
        "Brisbane - North",
        "Brisbane - West",
        "Ipswich Inner",
        "Ipswich Hinterland",
        "Logan - Beaudesert",
        "Gold Coast - North",
        "Gold Coast - South",
        "Surfers Paradise",
        "Sunshine Coast",
    ),
    **_regions(
        "WA",
        "Perth City",
        "Fremantle",
        "Cottesloe - Claremont",
        "Melville",
        "South Perth",
        "Victoria Park",
        "Canning",
        "Gosnells",
        "Armadale",
        "Rockingham",
        "Mandurah",
        "Joondalup",
        "Wanneroo",
        "Stirling",
    ),
    **_regions(
        "SA",
        "Adelaide City",
        "Adelaide Hills",
        "Burnside",
        "Campbelltown",
        "Norwood - Payneham - St Peters",
        "Unley",
        "Holdfast Bay",
        "Marion",
        "Mitcham",
        "Onkaparinga",
        "Port Adelaide - East",
        "Port Adelaide - West",
        "Charles Sturt",
        "West Torrens",
        "Salisbury",
        "Tea Tree Gully",
        "Playford",
    ),
    **_regions(
        "ACT",
        "North Canberra",
        "South Canberra",
        "Belconnen",
        "Gungahlin",
        "Tuggeranong",
        "Woden Valley",
        "Weston Creek",
        "Molonglo",
    ),
    **_regions(
        "TAS",
        "Hobart Inner",
        "Hobart - North East",
        "Hobart - North West",
        "Hobart - South and West",
        "Brighton",
    ),
    **_regions("NT", "Darwin City", "Darwin Suburbs", "Palmerston", "Litchfield"),
})

# Full state names as returned by the suburb search, checked in order
STATE_NAME_ABBREVIATIONS: tuple[tuple[str, str], ...] = (
    ("New South Wales", "NSW"),
    ("Victoria", "VIC"),
    ("Queensland", "QLD"),
    ("Western Australia", "WA"),
    ("South Australia", "SA"),
    ("Tasmania", "TAS"),
    ("Northern Territory", "NT"),
    ("Australian Capital", "ACT"),
)

STATE_CODES = frozenset({"NSW", "VIC", "QLD", "WA", "SA", "TAS", "NT", "ACT"})


def _address(gnaf_id: str, address: str, suburb: str, state: str, postcode: str) -> dict:
    return {
        "gnaf_id": gnaf_id,
        "address": address,
        "suburb": suburb,
        "state": state,
        "postcode": postcode,
    }


SAMPLE_ADDRESSES: tuple[dict, ...] = (
    # NSW - Western Sydney
    _address("GANSW100000001", "15 Railway Street", "Mays Hill", "NSW", "2145"),
    _address("GANSW100000002", "42 Victoria Road", "Mays Hill", "NSW", "2145"),
    _address("GANSW100000003", "88 Great Western Highway", "Mays Hill", "NSW", "2145"),
    _address("GANSW123456789", "123 Main Street", "Parramatta", "NSW", "2150"),
    _address("GANSW123456790", "55 Church Street", "Parramatta", "NSW", "2150"),
    _address("GANSW100000004", "12 Pitt Street", "Granville", "NSW", "2142"),
    _address("GANSW100000005", "78 Woodville Road", "Merrylands", "NSW", "2160"),
    _address("GANSW100000006", "34 Station Street", "Harris Park", "NSW", "2150"),
    _address("GANSW100000007", "156 James Ruse Drive", "Rosehill", "NSW", "2142"),
    # NSW - Sydney CBD & Eastern Suburbs
    _address("GANSW234567890", "45 George Street", "Sydney", "NSW", "2000"),
    _address("GANSW345678901", "78 Ocean Drive", "Bondi", "NSW", "2026"),
    _address("GANSW890123456", "67 Harbour View", "Mosman", "NSW", "2088"),
    # NSW - North Shore
    _address("GANSW456789012", "12 Station Road", "Chatswood", "NSW", "2067"),
    _address("GANSW567890123", "99 Park Avenue", "Manly", "NSW", "2095"),
    _address("GANSW678901234", "156 Victoria Street", "Epping", "NSW", "2121"),
    _address("GANSW789012345", "234 Pacific Highway", "Castle Hill", "NSW", "2154"),
    # VIC
    _address("GAVIC123456789", "42 Collins Street", "Melbourne", "VIC", "3000"),
    _address("GAVIC234567890", "88 Chapel Street", "South Yarra", "VIC", "3141"),
    # QLD
    _address("GAQLD123456789", "15 Queen Street", "Brisbane", "QLD", "4000"),
    _address("GAQLD234567890", "33 Gold Coast Highway", "Surfers Paradise", "QLD", "4217"),
)


def sample_orders(backend_url: str) -> list[dict]:
    """Demo order history. PDF links point at the configured backend."""
    base = backend_url.rstrip("/")

    def order(order_id, client, category, location, url, date):
        report = "pdf_suburb_report" if category == "Suburb" else "pdf_property_report"
        return {
            "order_id": order_id,
            "user_email": "demo@microburbs.com",
            "client": client,
            "report_category": category,
            "location": location,
            "pdf_report": f"{base}/{report}?order_id={order_id}",
            "url": url,
            "date": date,
        }

    return [
        order("ORD-2024-001", "Direct", "Suburb", "Parramatta, NSW",
              "/suburb-reports/Parramatta", "15-01-2024"),
        order("ORD-2024-002", "Premium", "Property", "123 Main Street, Sydney NSW 2000",
              "/property-reports/GANSW123456789", "12-01-2024"),
        order("ORD-2024-003", "Direct", "Suburb", "Bondi, NSW",
              "/suburb-reports/Bondi", "10-01-2024"),
        order("ORD-2024-004", "Direct", "Property", "45 Ocean View Drive, Bondi NSW 2026",
              "/property-reports/GANSW987654321", "08-01-2024"),
        order("ORD-2024-005", "Premium", "Suburb", "Manly, NSW",
              "/suburb-reports/Manly", "05-01-2024"),
    ]
