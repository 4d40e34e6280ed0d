"""
Example: MARS on California Housing
====================================
A pairwise-interaction MARS fit compared with OLS.

The forward pass is given a wall-clock budget: on expiry the model found
so far is pruned and returned, with a warning.
"""

import pandas as pd
from sklearn.datasets import fetch_california_housing
from sklearn.model_selection import train_test_split

# If running from the repo root (not pip-installed), uncomment:
# import sys; sys.path.insert(0, '..')

from marsfit import MARSRegressor

# ------------------------------------------------------------------
# 1.  Load data
# ------------------------------------------------------------------
data = fetch_california_housing()
X = pd.DataFrame(data.data, columns=data.feature_names)
y = pd.Series(data.target, name='MedHouseVal')

print(f"Full dataset: n={len(X)}, p={X.shape[1]}")
print(f"Features: {list(X.columns)}\n")

# ------------------------------------------------------------------
# 2.  Train / test split (80/20, seed=42)
# ------------------------------------------------------------------
X_train, X_test, y_train, y_test = train_test_split(
    X, y, test_size=0.2, random_state=42
)

# ------------------------------------------------------------------
# 3.  Fit MARS (degree 2, all cores, two-minute forward budget)
# ------------------------------------------------------------------
model = MARSRegressor(max_degree=2, max_terms=31, time_budget=120,
                      n_jobs=-1)
model.fit(X_train, y_train, verbose=True)

# ------------------------------------------------------------------
# 4.  Evaluate on test set
# ------------------------------------------------------------------
test_r2 = model.score(X_test, y_test)
print(f"\nTest R² : {test_r2:.4f}  ({test_r2*100:.1f}%)")
print(f"Train R²: {model.model_.r2:.4f}  ({model.model_.r2*100:.1f}%)")

# ------------------------------------------------------------------
# 5.  Compare to OLS
# ------------------------------------------------------------------
from sklearn.linear_model import LinearRegression

ols = LinearRegression().fit(X_train, y_train)
ols_test = ols.score(X_test, y_test)
print(f"\nOLS test R²: {ols_test:.4f}  ({ols_test*100:.1f}%)")
print(f"MARS improvement: +{(test_r2 - ols_test)*100:.1f} pp")

# ------------------------------------------------------------------
# 6.  Selected terms and the GCV curve
# ------------------------------------------------------------------
print("\nSelected terms:")
print(model.explain().to_string(index=False))
print("\nGCV by model size:")
print(model.gcv_curve_.to_string())
