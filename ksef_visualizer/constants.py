"""Code tables defined by the KSeF FA and UPO schemas."""

# Form codes (Naglowek/KodFormularza/@kodSystemowy)
FORM_CODE_FA1 = "FA (1)"
FORM_CODE_FA2 = "FA (2)"
FORM_CODE_FA3 = "FA (3)"

# Payment method codes -> labels
PAYMENT_METHODS = {
    "1": "Gotowka",
    "2": "Karta",
    "3": "Bon",
    "4": "Czek",
    "5": "Kredyt",
    "6": "Przelew",
    "7": "Mobilna",
}

# VAT rate codes (P_12) -> labels, union over all schema versions
VAT_RATES = {
    "23": "23%",
    "22": "22%",
    "8": "8%",
    "7": "7%",
    "5": "5%",
    "4": "4%",
    "3": "3%",
    "0": "0%",
    "0 KR": "0% (kraj)",
    "0 WDT": "0% (WDT)",
    "0 EX": "0% (eksport)",
    "zw": "zw",
    "oo": "odwr. obc.",
    "np": "np",
    "np I": "np (poza krajem)",
    "np II": "np (art. 100 ust. 1 pkt 4)",
}

# Invoice kinds (RodzajFaktury) -> document titles
INVOICE_KINDS = {
    "VAT": "Faktura podstawowa",
    "KOR": "Faktura korygujaca",
    "ZAL": "Faktura zaliczkowa",
    "ROZ": "Faktura rozliczeniowa",
    "UPR": "Faktura uproszczona",
    "KOR_ZAL": "Faktura korygujaca zaliczkowa",
    "KOR_ROZ": "Faktura korygujaca rozliczeniowa",
}

# Correction effect date (TypKorekty)
CORRECTION_TYPES = {
    "1": "Data zdarzenia faktury pierwotnej",
    "2": "Data wystawienia faktury korygujacej",
    "3": "Data inna",
}

# Third party roles (Podmiot3/Rola)
THIRD_PARTY_ROLES = {
    "1": "Faktor",
    "2": "Odbiorca",
    "3": "Podmiot pierwotny",
    "4": "Dodatkowy nabywca",
    "5": "Wystawca faktury",
    "6": "Dokonujacy platnosci",
    "7": "JST - wystawca",
    "8": "JST - odbiorca",
    "9": "Czlonek grupy VAT - wystawca",
    "10": "Czlonek grupy VAT - odbiorca",
    "11": "Pracownik",
}

# Yes/no markers used across the schemas
FLAG_LABELS = {
    "1": "Tak",
    "2": "Nie",
}

# UPO context identifier kinds (Uwierzytelnienie/IdKontekstu/*)
CONTEXT_ID_KINDS = {
    "Nip": "NIP",
    "IdWewnetrzny": "Identyfikator wewnetrzny",
    "IdZlozonyVatUE": "Identyfikator zlozony VAT UE",
    "IdDostawcyUslugPeppol": "Identyfikator dostawcy uslug Peppol",
}

# Taxpayer status (Podmiot1/StatusInfoPodatnika)
TAXPAYER_STATUS = {
    "1": "Stan likwidacji",
    "2": "Postepowanie restrukturyzacyjne",
    "3": "Stan upadlosci",
    "4": "Przedsiebiorstwo w spadku",
}
