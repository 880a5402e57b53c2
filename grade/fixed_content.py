"""
grade/fixed_content.py - Weekday fixed assets (news, horoscope, features)
keyed by hour and minute.
"""

WEEKDAYS = ("seg", "ter", "qua", "qui", "sex")
DAYS     = WEEKDAYS + ("sab", "dom")

DAY_SUFFIX = {
    "seg": "SEGUNDA",
    "ter": "TERCA",
    "qua": "QUARTA",
    "qui": "QUINTA",
    "sex": "SEXTA",
    "sab": "SABADO",
    "dom": "DOMINGO",
}

# (hour, minute) -> assets, in broadcast order. Files get the day suffix.
WEEKDAY_FIXED = {
    (8, 30):  ["HOROSCOPO_DO_DIA_EDICAO01"],
    (9, 0):   ["NOTICIA_DA_HORA_09HORAS"],
    (9, 30):  ["HOROSCOPO_DO_DIA_EDICAO02"],
    (10, 0):  ["NOTICIA_DA_HORA_10HORAS"],
    (10, 30): ["HOROSCOPO_DO_DIA_EDICAO03"],
    (11, 0):  ["NOTICIA_DA_HORA_11HORAS"],
    (11, 30): ["HOROSCOPO_DO_DIA_EDICAO04"],
    (12, 0):  ["NOTICIA_DA_HORA_12HORAS", "RARIDADES_BLOCO01",
               "AS_ULTIMAS_DO_ESPORTE_EDICAO01", "RARIDADES_BLOCO02"],
    (12, 30): ["CLIMA_BRASIL_SUDESTE", "RARIDADES_BLOCO03",
               "AS_ULTIMAS_DO_ESPORTE_EDICAO02", "RARIDADES_BLOCO04"],
    (13, 0):  ["NOTICIA_DA_HORA_13HORAS", "FIQUE_SABENDO_EDICAO01"],
    (13, 30): ["FIQUE_SABENDO_EDICAO02"],
    (14, 0):  ["NOTICIA_DA_HORA_14HORAS", "FIQUE_SABENDO_EDICAO03"],
    (14, 30): ["FIQUE_SABENDO_EDICAO04"],
    (15, 0):  ["NOTICIA_DA_HORA_15HORAS", "FIQUE_SABENDO_EDICAO05"],
    (16, 0):  ["NOTICIA_DA_HORA_16HORAS"],
    (16, 30): ["FATOS_E_BOATOS_EDICAO01"],
    (17, 0):  ["NOTICIA_DA_HORA_17HORAS"],
    (18, 0):  ["NOTICIA_DA_HORA_18HORAS", "TOP_10_MIX_BLOCO01"],
    (18, 30): ["TOP_10_MIX_BLOCO02"],
    (20, 0):  ["PAPO_SERIO", "ROMANCE_BLOCO01"],
    (20, 30): ["MOMENTO_DE_REFLEXAO", "ROMANCE_BLOCO02"],
    (21, 0):  ["MAMAE_CHEGUEI", "ROMANCE_BLOCO03"],
    (22, 30): ["CURIOSIDADES", "ROMANCE_BLOCO04"],
}


def is_weekday(day: str) -> bool:
    return day in WEEKDAYS


def fixed_files(hour: int, minute: int, day: str) -> list:
    """Fixed asset filenames for a weekday half-hour; empty on weekends."""
    if not is_weekday(day):
        return []
    suffix = DAY_SUFFIX[day]
    return [f"{name}_{suffix}.mp3" for name in WEEKDAY_FIXED.get((hour, minute), [])]


def parse_hour_range(text: str) -> tuple:
    start, _, end = str(text).partition("-")
    return int(start), int(end or start)


def program_id_for(hour: int, program_ids: dict, default: str = "PROGRAMA") -> str:
    for hour_range, program in program_ids.items():
        try:
            start, end = parse_hour_range(hour_range)
        except ValueError:
            continue
        if start <= hour <= end:
            return program
    return default
