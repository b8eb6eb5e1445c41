# spec_extractors.py
"""
Regex extraction of category specs from product titles.

Every function takes a raw title (or search term) and returns plain
values or a dict; nothing here touches the network or the database.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from pcparts_scraper.core.config import GPU_PARTNERS

_TRADEMARKS = re.compile(r"[™®©]")
_SPACES = re.compile(r"\s+")


def clean_title(title: Optional[str]) -> str:
    if not title:
        return ""
    return _SPACES.sub(" ", _TRADEMARKS.sub("", title)).strip()


def _lower(text: Optional[str]) -> str:
    return clean_title(text).lower()


def _first_match(patterns: List[Tuple[re.Pattern, str]], text: str, default: Any = None) -> Any:
    for pattern, value in patterns:
        if pattern.search(text):
            return value
    return default


# ---------------------------------------------------------------- GPU

_NVIDIA_MODEL = re.compile(r"\b(rtx|gtx)\s*(\d{3,4})\s*(ti\s*super|ti|super)?\b")
_AMD_MODEL = re.compile(r"\brx\s*(\d{3,4})\s*(xtx|xt|gre)?\b")
_AMD_BARE_MODEL = re.compile(r"\b([5-9]\d00)\s*(xtx|xt|gre)\b")
_VEGA_MODEL = re.compile(r"\bvega\s*(64|56)\b")
_INTEL_ARC_MODEL = re.compile(r"\b(?:arc\s*)?([ab]\d{3})\b")
_GPU_MEMORY_SIZE = re.compile(r"(\d+)\s*GB", re.I)
_GPU_MEMORY_TYPE = re.compile(r"GDDR\d+[A-Z]*", re.I)


def extract_gpu_model(name: Optional[str]) -> str:
    """
    Collection suffix for a GPU title or chipset, most specific variant first.

    "ASUS TUF RTX 4070 Ti SUPER 16GB" -> "4070_ti_super",
    "Radeon RX 7900 XTX" -> "7900_xtx", "Intel Arc A770" -> "a770".
    """
    text = _lower(name)
    if not text:
        return "unknown"

    match = _NVIDIA_MODEL.search(text)
    if match:
        suffix = _SPACES.sub("_", match.group(3)) if match.group(3) else ""
        return f"{match.group(2)}_{suffix}" if suffix else match.group(2)

    match = _AMD_MODEL.search(text) or _AMD_BARE_MODEL.search(text)
    if match:
        return f"{match.group(1)}_{match.group(2)}" if match.group(2) else match.group(1)

    match = _VEGA_MODEL.search(text)
    if match:
        return f"vega_{match.group(1)}"

    if re.search(r"\barc\b", text):
        match = _INTEL_ARC_MODEL.search(text)
        if match:
            return match.group(1)

    return "unknown"


def detect_gpu_manufacturer(name: Optional[str]) -> str:
    text = _lower(name)
    if re.search(r"\b(rtx|gtx|geforce|nvidia)\b", text):
        return "NVIDIA"
    if re.search(r"\b(radeon|rx\s*\d{3,4}|amd)\b", text):
        return "AMD"
    if re.search(r"\b(arc|intel)\b", text):
        return "Intel"
    return "Unknown"


def detect_gpu_partner(name: Optional[str]) -> Optional[str]:
    text = clean_title(name).upper()
    for partner in GPU_PARTNERS:
        if re.search(rf"\b{re.escape(partner.upper())}\b", text):
            return partner
    return None


def extract_gpu_memory(name: Optional[str]) -> Dict[str, Any]:
    title = clean_title(name)
    size = _GPU_MEMORY_SIZE.search(title)
    mem_type = _GPU_MEMORY_TYPE.search(title)
    return {
        "size": int(size.group(1)) if size else None,
        "type": mem_type.group(0) if mem_type else None,
    }


def extract_gpu_specs(name: Optional[str]) -> Dict[str, Any]:
    model = extract_gpu_model(name)
    return {
        "gpu_model": model,
        "chipset": _gpu_chipset(name, model),
        "memory": extract_gpu_memory(name),
    }


_VARIANT_LABELS = {"ti": "Ti", "super": "SUPER", "xt": "XT", "xtx": "XTX", "gre": "GRE"}


def _gpu_chipset(name: Optional[str], model: str) -> Optional[str]:
    if model == "unknown":
        return None
    if model.startswith("vega_"):
        return f"RX Vega {model[5:]}"

    number, *variant = model.split("_")
    if not number.isdigit():
        return f"Arc {number.upper()}"

    label = " ".join(_VARIANT_LABELS.get(part, part.upper()) for part in variant)
    text = _lower(name)
    if re.search(rf"gtx\s*{number}", text):
        prefix = "GTX"
    elif re.search(rf"rtx\s*{number}", text):
        prefix = "RTX"
    else:
        prefix = "RX"
    return f"{prefix} {number} {label}".strip()


# ---------------------------------------------------------------- CPU

_CPU_FAMILIES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"core\s*ultra\s*9"), "intel_core_ultra_9"),
    (re.compile(r"core\s*ultra\s*7"), "intel_core_ultra_7"),
    (re.compile(r"core\s*ultra\s*5"), "intel_core_ultra_5"),
    (re.compile(r"\bi9[\s-]"), "intel_core_i9"),
    (re.compile(r"\bi7[\s-]"), "intel_core_i7"),
    (re.compile(r"\bi5[\s-]"), "intel_core_i5"),
    (re.compile(r"\bi3[\s-]"), "intel_core_i3"),
    (re.compile(r"\bxeon\b"), "intel_xeon"),
    (re.compile(r"threadripper"), "amd_threadripper"),
    (re.compile(r"\bepyc\b"), "amd_epyc"),
    (re.compile(r"ryzen\s*9"), "amd_ryzen_9"),
    (re.compile(r"ryzen\s*7"), "amd_ryzen_7"),
    (re.compile(r"ryzen\s*5"), "amd_ryzen_5"),
    (re.compile(r"ryzen\s*3"), "amd_ryzen_3"),
    (re.compile(r"\bintel\b"), "intel_cpu"),
    (re.compile(r"\bamd\b"), "amd_cpu"),
]

_SOCKETS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"lga\s*1851"), "LGA1851"),
    (re.compile(r"lga\s*1700"), "LGA1700"),
    (re.compile(r"lga\s*1200"), "LGA1200"),
    (re.compile(r"lga\s*2066"), "LGA2066"),
    (re.compile(r"lga\s*3647"), "LGA3647"),
    (re.compile(r"\bam5\b"), "AM5"),
    (re.compile(r"\bam4\b"), "AM4"),
    (re.compile(r"\bstrx4\b"), "sTRX4"),
    (re.compile(r"\btr4\b"), "TR4"),
    (re.compile(r"\bsp3\b"), "SP3"),
]


def extract_cpu_family(text: Optional[str]) -> str:
    """Collection suffix for a CPU title or search term (`cpus_<family>`)."""
    lowered = f"{_lower(text)} "
    return _first_match(_CPU_FAMILIES, lowered, "cpu_other")


def detect_cpu_manufacturer(text: Optional[str]) -> str:
    lowered = _lower(text)
    if re.search(r"\b(intel|core\s*(i\d|ultra)|xeon|pentium|celeron)\b", lowered) or re.search(
        r"\bi[3579]-\d", lowered
    ):
        return "Intel"
    if re.search(r"\b(amd|ryzen|threadripper|epyc|athlon)\b", lowered):
        return "AMD"
    return "Unknown"


def extract_socket(text: Optional[str]) -> str:
    lowered = _lower(text)
    socket = _first_match(_SOCKETS, lowered)
    if socket:
        return socket
    # infer from well-known generations when the title omits the socket
    if re.search(r"core\s*ultra\s*[579]\s*2\d\d", lowered):
        return "LGA1851"
    if re.search(r"\bi[3579]-1[234]\d{3}", lowered):
        return "LGA1700"
    if re.search(r"\bi[3579]-1[01]\d{3}", lowered):
        return "LGA1200"
    if re.search(r"ryzen\s*[3579]\s*[79]\d{3}", lowered):
        return "AM5"
    if re.search(r"ryzen\s*[3579]\s*[1-5]\d{3}", lowered):
        return "AM4"
    return "Unknown"


def extract_cpu_generation(text: Optional[str]) -> Optional[str]:
    lowered = _lower(text)
    match = re.search(r"core\s*ultra\s*[579]\s*(\d)\d\d", lowered)
    if match:
        return f"Core Ultra Series {match.group(1)}"
    match = re.search(r"\bi[3579]-(1[0-4]|[2-9])\d{3}", lowered)
    if match:
        gen = int(match.group(1))
        suffix = {2: "nd", 3: "rd"}.get(gen, "th")
        return f"{gen}{suffix} Gen"
    match = re.search(r"ryzen\s*[3579]\s*(\d)\d{3}", lowered)
    if match:
        return f"Ryzen {match.group(1)}000 Series"
    return None


def extract_cpu_specs(text: Optional[str]) -> Dict[str, Any]:
    lowered = _lower(text)
    cores = re.search(r"(\d+)[\s-]*cores?", lowered)
    threads = re.search(r"(\d+)[\s-]*threads?", lowered)
    clocks = [float(v) for v in re.findall(r"(\d+(?:\.\d+)?)\s*ghz", lowered)]
    cache = re.search(r"(\d+)\s*mb\s*(?:l3\s*|smart\s*)?cache", lowered)
    tdp = re.search(r"(\d+)\s*w\b", lowered)
    return {
        "family": extract_cpu_family(text),
        "socket": extract_socket(text),
        "generation": extract_cpu_generation(text),
        "cores": int(cores.group(1)) if cores else None,
        "threads": int(threads.group(1)) if threads else None,
        "base_clock_ghz": min(clocks) if len(clocks) > 1 else None,
        "boost_clock_ghz": max(clocks) if clocks else None,
        "cache_mb": int(cache.group(1)) if cache else None,
        "tdp_w": int(tdp.group(1)) if tdp else None,
    }


# ---------------------------------------------------------------- RAM

_RAM_MANUFACTURERS = (
    "Corsair", "Kingston", "Crucial", "Teamgroup", "Team", "Patriot", "ADATA",
    "XPG", "PNY", "Samsung", "SK Hynix", "Mushkin", "OLOy", "Silicon Power",
)


def extract_ram_specs(text: Optional[str]) -> Dict[str, Any]:
    lowered = _lower(text)
    mem_type = re.search(r"ddr([45])", lowered)
    speed = re.search(r"ddr[45][-\s]*(\d{4})", lowered) or re.search(r"(\d{4})\s*mhz", lowered) or re.search(
        r"(\d{4})\s*mt/s", lowered
    )
    capacity = re.search(r"(\d+)\s*gb", lowered)
    kit = re.search(r"(\d+)\s*x\s*(\d+)\s*gb", lowered)
    latency = re.search(r"\bcl\s*(\d+)\b", lowered) or re.search(r"\bc(\d{2})\b", lowered)

    total_capacity = int(capacity.group(1)) if capacity else None
    if kit:
        modules, per_module = int(kit.group(1)), int(kit.group(2))
        kit_configuration = f"{modules}x{per_module}GB"
        total_capacity = modules * per_module
    elif total_capacity:
        kit_configuration = f"1x{total_capacity}GB"
    else:
        kit_configuration = None

    return {
        "memory_type": f"DDR{mem_type.group(1)}" if mem_type else None,
        "speed_mhz": int(speed.group(1)) if speed else None,
        "capacity_gb": total_capacity,
        "kit_configuration": kit_configuration,
        "cas_latency": int(latency.group(1)) if latency else None,
        "rgb": bool(re.search(r"\brgb\b", lowered)),
        "form": "laptop" if is_laptop_ram(text) else "desktop",
    }


def detect_ram_manufacturer(text: Optional[str]) -> str:
    lowered = _lower(text)
    if re.search(r"g\.?\s*skill", lowered):
        return "G.Skill"
    for brand in _RAM_MANUFACTURERS:
        if re.search(rf"\b{re.escape(brand.lower())}\b", lowered):
            return brand
    return "Unknown"


def is_laptop_ram(text: Optional[str]) -> bool:
    lowered = _lower(text)
    return bool(re.search(r"so-?dimm|laptop|notebook", lowered))


# ---------------------------------------------------------------- PSU

_PSU_CERTIFICATIONS = ("titanium", "platinum", "gold", "silver", "bronze", "white")

_PSU_BRANDS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bcorsair\b"), "Corsair"),
    (re.compile(r"\bevga\b"), "EVGA"),
    (re.compile(r"\bseasonic\b"), "Seasonic"),
    (re.compile(r"be\s*quiet"), "be quiet!"),
    (re.compile(r"\bthermaltake\b"), "Thermaltake"),
    (re.compile(r"cooler\s*master"), "Cooler Master"),
    (re.compile(r"\bmsi\b"), "MSI"),
    (re.compile(r"\basus\b|\brog\b"), "ASUS"),
    (re.compile(r"\bgigabyte\b"), "Gigabyte"),
    (re.compile(r"\bnzxt\b"), "NZXT"),
    (re.compile(r"\bfsp\b"), "FSP"),
    (re.compile(r"\bsuper\s*flower\b"), "Super Flower"),
    (re.compile(r"\bsilverstone\b"), "SilverStone"),
    (re.compile(r"\blian\s*li\b"), "Lian Li"),
    (re.compile(r"fractal"), "Fractal Design"),
    (re.compile(r"\bantec\b"), "Antec"),
]


def extract_psu_specs(text: Optional[str]) -> Dict[str, Any]:
    lowered = _lower(text)
    wattage = re.search(r"(\d{3,4})\s*w(?:att)?s?\b", lowered)

    certification = None
    match = re.search(r"80\s*(?:\+|plus)\s*(titanium|platinum|gold|silver|bronze|white)?", lowered)
    if match:
        tier = match.group(1)
        certification = f"80+ {tier.capitalize()}" if tier else "80+"
    else:
        for tier in _PSU_CERTIFICATIONS[:5]:
            if re.search(rf"\b{tier}\b", lowered):
                certification = f"80+ {tier.capitalize()}"
                break

    if re.search(r"fully[\s-]*modular|full[\s-]*modular", lowered):
        modularity = "fully_modular"
    elif re.search(r"semi[\s-]*modular", lowered):
        modularity = "semi_modular"
    elif re.search(r"non[\s-]*modular", lowered):
        modularity = "non_modular"
    elif "modular" in lowered:
        modularity = "fully_modular"
    else:
        modularity = None

    if re.search(r"sfx[\s-]*l\b", lowered):
        form_factor = "sfx-l"
    elif re.search(r"\bsfx\b", lowered):
        form_factor = "sfx"
    elif re.search(r"flex[\s-]*atx", lowered):
        form_factor = "flex_atx"
    elif re.search(r"\btfx\b", lowered):
        form_factor = "tfx"
    else:
        form_factor = "atx"

    features = [
        name
        for name, pattern in (
            ("rgb", r"\ba?rgb\b"),
            ("fanless", r"fanless|passive"),
            ("zero_rpm", r"zero\s*rpm|0\s*rpm|eco\s*mode"),
            ("atx_3", r"atx\s*3\.?\d"),
            ("pcie_5", r"pcie?\s*5\.?\d|12vhpwr|12v-2x6"),
        )
        if re.search(pattern, lowered)
    ]

    return {
        "wattage": int(wattage.group(1)) if wattage else None,
        "certification": certification,
        "modularity": modularity,
        "form_factor": form_factor,
        "features": features,
    }


def detect_psu_manufacturer(text: Optional[str]) -> str:
    return _first_match(_PSU_BRANDS, _lower(text), "Unknown")


# ---------------------------------------------------------------- Cooler

_COOLER_BRANDS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bnoctua\b"), "Noctua"),
    (re.compile(r"be\s*quiet"), "be quiet!"),
    (re.compile(r"cooler\s*master"), "Cooler Master"),
    (re.compile(r"\bcorsair\b"), "Corsair"),
    (re.compile(r"\bnzxt\b"), "NZXT"),
    (re.compile(r"arctic"), "Arctic"),
    (re.compile(r"deep\s*cool|deepcool"), "DeepCool"),
    (re.compile(r"\bthermalright\b"), "Thermalright"),
    (re.compile(r"\blian\s*li\b"), "Lian Li"),
    (re.compile(r"\bekwb\b|\bek\b"), "EK"),
    (re.compile(r"\bid[\s-]*cooling\b"), "ID-COOLING"),
    (re.compile(r"\bthermaltake\b"), "Thermaltake"),
    (re.compile(r"\bmsi\b"), "MSI"),
    (re.compile(r"\basus\b|\brog\b"), "ASUS"),
    (re.compile(r"\bscythe\b"), "Scythe"),
]

_COOLER_SOCKETS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"lga\s*1851"), "LGA1851"),
    (re.compile(r"lga\s*1700"), "LGA1700"),
    (re.compile(r"lga\s*1200"), "LGA1200"),
    (re.compile(r"lga\s*115x|lga\s*1151|lga\s*1150|lga\s*1155"), "LGA115X"),
    (re.compile(r"lga\s*2066"), "LGA2066"),
    (re.compile(r"\bam5\b"), "AM5"),
    (re.compile(r"\bam4\b"), "AM4"),
    (re.compile(r"\bstr5\b|\btr5\b"), "sTR5"),
    (re.compile(r"\bstrx4\b|\btr4\b"), "sTRX4"),
]


def extract_cooler_specs(text: Optional[str]) -> Dict[str, Any]:
    lowered = _lower(text)
    liquid = bool(re.search(r"liquid|\baio\b|all[\s-]*in[\s-]*one|water\s*cool", lowered))
    air = bool(re.search(r"air\s*cool|tower|heatsink|heat\s*sink|heat\s*pipe", lowered))
    if liquid:
        cooler_type = "Liquid"
    elif air:
        cooler_type = "Air"
    else:
        cooler_type = "Unknown"

    radiator = re.search(r"\b(120|140|240|280|360|420)\s*mm\b", lowered) if liquid else None
    fan = re.search(r"\b(80|92|120|140)\s*mm\b", lowered)
    height = re.search(r"(\d{2,3})\s*mm\s*(?:height|tall)", lowered)
    noise = re.search(r"(\d+(?:\.\d+)?)\s*db", lowered)
    tdp = re.search(r"(\d{2,3})\s*w\s*tdp|tdp\s*(\d{2,3})\s*w", lowered)

    return {
        "cooler_type": cooler_type,
        "is_aio": liquid,
        "radiator_size_mm": int(radiator.group(1)) if radiator else None,
        "fan_size_mm": int(fan.group(1)) if fan else None,
        "height_mm": int(height.group(1)) if height else None,
        "sockets": [name for pattern, name in _COOLER_SOCKETS if pattern.search(lowered)],
        "rgb": bool(re.search(r"\ba?rgb\b", lowered)),
        "noise_db": float(noise.group(1)) if noise else None,
        "tdp_w": int(tdp.group(1) or tdp.group(2)) if tdp else None,
    }


def detect_cooler_manufacturer(text: Optional[str]) -> str:
    return _first_match(_COOLER_BRANDS, _lower(text), "Unknown")


def cooler_tier(specs: Dict[str, Any], price: Optional[float]) -> str:
    """Rough budget/mainstream/performance/enthusiast bucket."""
    radiator = specs.get("radiator_size_mm") or 0
    if radiator >= 360 or (price or 0) >= 150:
        return "enthusiast"
    if radiator >= 240 or (price or 0) >= 80:
        return "performance"
    if (price or 0) >= 35:
        return "mainstream"
    return "budget"


# ---------------------------------------------------------------- Motherboard

_CHIPSETS = (
    "Z890", "B860", "H810", "Z790", "B760", "H770", "H610", "Z690", "B660", "H670",
    "Z590", "B560", "H570", "H510", "Z490", "B460", "H410", "X299", "W790", "W680",
    "X870E", "X870", "B850", "B840", "X670E", "X670", "B650E", "B650", "A620",
    "X570", "B550", "A520", "X470", "B450", "TRX50", "TRX40", "WRX90", "WRX80",
)

_MOBO_BRANDS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\basus\b|\brog\b|\btuf\b|\bprime\b|\bproart\b"), "ASUS"),
    (re.compile(r"\bmsi\b|\bmag\b|\bmpg\b|\bmeg\b"), "MSI"),
    (re.compile(r"\bgigabyte\b|\baorus\b"), "Gigabyte"),
    (re.compile(r"\basrock\b"), "ASRock"),
    (re.compile(r"\bevga\b"), "EVGA"),
    (re.compile(r"\bbiostar\b"), "Biostar"),
    (re.compile(r"\bnzxt\b"), "NZXT"),
]

_INTEL_CHIPSET_SOCKETS = {
    ("Z890", "B860", "H810"): "LGA1851",
    ("Z790", "B760", "H770", "H610", "Z690", "B660", "H670", "W680"): "LGA1700",
    ("Z590", "B560", "H570", "H510", "Z490", "B460", "H410"): "LGA1200",
    ("X299",): "LGA2066",
    ("W790",): "LGA4677",
}
_AMD_CHIPSET_SOCKETS = {
    ("X870E", "X870", "B850", "B840", "X670E", "X670", "B650E", "B650", "A620"): "AM5",
    ("X570", "B550", "A520", "X470", "B450"): "AM4",
    ("TRX50", "WRX90"): "sTR5",
    ("TRX40",): "sTRX4",
    ("WRX80",): "sWRX8",
}


def extract_chipset(text: Optional[str]) -> Optional[str]:
    upper = clean_title(text).upper()
    for chipset in _CHIPSETS:
        if re.search(rf"\b{chipset}[A-Z]?\b", upper):
            return chipset
    return None


def chipset_platform(chipset: Optional[str]) -> Optional[str]:
    if not chipset:
        return None
    for table, platform in ((_INTEL_CHIPSET_SOCKETS, "intel"), (_AMD_CHIPSET_SOCKETS, "amd")):
        if any(chipset in group for group in table):
            return platform
    return None


def extract_motherboard_socket(text: Optional[str]) -> str:
    socket = extract_socket(text)
    if socket != "Unknown":
        return socket
    chipset = extract_chipset(text)
    for table in (_INTEL_CHIPSET_SOCKETS, _AMD_CHIPSET_SOCKETS):
        for group, value in table.items():
            if chipset in group:
                return value
    return "Unknown"


def extract_form_factor(text: Optional[str]) -> Optional[str]:
    lowered = _lower(text)
    if re.search(r"\be-?atx|extended\s*atx", lowered):
        return "E-ATX"
    if re.search(r"micro[\s-]*atx|m-?atx|\bmatx\b|µatx", lowered):
        return "Micro-ATX"
    if re.search(r"mini[\s-]*itx|\bitx\b", lowered):
        return "Mini-ITX"
    if re.search(r"\batx\b", lowered):
        return "ATX"
    return None


def extract_motherboard_model(text: Optional[str]) -> str:
    """Grouping key such as `intel_z790` or `amd_am5`."""
    chipset = extract_chipset(text)
    platform = chipset_platform(chipset)
    if chipset and platform:
        return f"{platform}_{chipset.lower()}"
    socket = extract_motherboard_socket(text)
    if socket in ("AM5", "AM4"):
        return f"amd_{socket.lower()}"
    lowered = _lower(text)
    if "intel" in lowered or socket.startswith("LGA"):
        return "intel_motherboard"
    if "amd" in lowered:
        return "amd_motherboard"
    return "motherboard_other"


def extract_motherboard_specs(text: Optional[str]) -> Dict[str, Any]:
    lowered = _lower(text)
    chipset = extract_chipset(text)
    socket = extract_motherboard_socket(text)
    if "ddr5" in lowered:
        memory_type = "DDR5"
    elif "ddr4" in lowered:
        memory_type = "DDR4"
    elif socket in ("AM5", "LGA1851"):
        memory_type = "DDR5"
    else:
        memory_type = None
    return {
        "board_model": extract_motherboard_model(text),
        "chipset": chipset,
        "socket": socket,
        "form_factor": extract_form_factor(text),
        "memory_type": memory_type,
        "wifi": bool(re.search(r"wi-?fi|wireless", lowered)),
    }


def detect_motherboard_manufacturer(text: Optional[str]) -> str:
    return _first_match(_MOBO_BRANDS, _lower(text), "Unknown")
