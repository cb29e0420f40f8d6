"""Crée des fichiers de démonstration pour SuiviVente (stock initial, ventes Excel et CSV)."""

import pandas as pd
from pathlib import Path

from suivivente.io_excel import save_xlsx

DATA_DIR = Path(__file__).parent / "data"
DATA_DIR.mkdir(exist_ok=True)

stock = pd.DataFrame({
    "Produit": ["Coca-Cola", "Sandwich Jambon", "Eau minérale", "Chips"],
    "Types": ["Boissons", "Alimentation", "Boissons", "Snacks"],
    "Quantité": [100, 50, 80, 40],
})

ventes = pd.DataFrame({
    "Caisse": ["Caisse 1", "Caisse 2", "Caisse 1", "", "Caisse 1"],
    "Produit": ["Coca-Cola", "Sandwich Jambon", "Eau minérale", "Chips", "Coca-Cola"],
    "Types": ["Boissons", "Alimentation", "Boissons", "Snacks", "Boissons"],
    "Quantité": [5, 2, 3, 4, 5],
    "Montant": [14.00, 9.00, 4.50, 6.00, 14.00],
    "Vendeur": ["Jean", "Sophie", "Jean", "Sophie", "Jean"],
    # Numéros de série Excel : 45000 = 2023-03-15
    "Date": [45000, 45000, 45001, 45001, 45000],
})

save_xlsx(DATA_DIR / "stock.xlsx", {"Stock": stock})
save_xlsx(DATA_DIR / "ventes.xlsx", {"Ventes": ventes})

# Même contenu en CSV point-virgule, montants à virgule et dates jj/mm/aaaa
ventes_csv = ventes.assign(
    Montant=ventes["Montant"].map(lambda m: f"{m:.2f}".replace(".", ",")),
    Date=["15/03/2023", "15/03/2023", "16/03/2023", "16/03/2023", "15/03/2023"],
)
ventes_csv.to_csv(DATA_DIR / "ventes.csv", sep=";", index=False, encoding="utf-8")
print(f"Fichiers créés dans {DATA_DIR}")
