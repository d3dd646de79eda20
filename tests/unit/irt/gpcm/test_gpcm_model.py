"""
Tests for GPCMItemModel: stored-state queries, parameter setters, the
proposal/commit cycle, priors, and equating transforms.
"""

import numpy as np
import pytest

from gpcm_analysis.core.accumulators import RunningMean
from gpcm_analysis.core.exceptions import (
    InvalidParameterShapeError,
    UnsupportedParameterError,
)
from gpcm_analysis.irt import (
    GPCMItemModel,
    GPCMParameters,
    IrmType,
    NormalPrior,
    ParameterName,
)

EPS = 1e-6


@pytest.fixture
def item() -> GPCMItemModel:
    return GPCMItemModel(
        discrimination=1.3, steps=[0.0, -1.2, 0.1, 0.9], name="item01"
    )


class TestConstruction:
    def test_category_range(self, item: GPCMItemModel) -> None:
        assert item.n_categories == 4
        assert item.n_parameters == 5
        assert item.min_category == 0
        assert item.max_category == 3
        assert item.model_type == IrmType.GPCM

    def test_default_score_weights(self, item: GPCMItemModel) -> None:
        np.testing.assert_array_equal(item.score_weights, [0, 1, 2, 3])

    def test_from_parameters(self) -> None:
        params = GPCMParameters(discrimination=0.7, steps=(0.0, 0.4))
        item = GPCMItemModel.from_parameters(params, 1.0, name="x")

        assert item.parameters == params
        assert item.scaling_constant == 1.0
        assert item.name == "x"

    def test_rejects_nonzero_first_step(self) -> None:
        with pytest.raises(ValueError, match="fixed to 0"):
            GPCMItemModel(1.0, [0.3, 0.5])

    def test_steps_property_is_a_copy(self, item: GPCMItemModel) -> None:
        steps = item.steps
        steps[1] = 99.0
        assert item.steps[1] == -1.2


class TestProbability:
    def test_stored_state_matches_explicit_vector(
        self, item: GPCMItemModel
    ) -> None:
        iparam = item.get_item_parameter_array()
        for theta in [-2.0, 0.0, 1.3]:
            for k in range(item.n_categories):
                assert item.probability(theta, k) == item.probability_at(
                    theta, iparam, k, item.scaling_constant
                )

    def test_explicit_vector_ignores_stored_state(
        self, item: GPCMItemModel
    ) -> None:
        other = [1.0, 0.0, 0.0]
        assert item.probability_at(0.0, other, 0, 1.7) == pytest.approx(0.5)

    def test_probability_matrix(self, item: GPCMItemModel) -> None:
        theta = np.array([-1.0, 0.0, 1.0])
        matrix = item.probability_matrix(theta)

        assert matrix.shape == (3, 4)
        np.testing.assert_allclose(matrix[1], item.probabilities(0.0))

    def test_expected_value_uses_score_weights(
        self, item: GPCMItemModel
    ) -> None:
        probs = item.probabilities(0.5)
        assert item.expected_value(0.5) == pytest.approx(
            float(np.arange(4) @ probs)
        )

        item.score_weights = [0.0, 0.0, 0.0, 1.0]
        assert item.expected_value(0.5) == pytest.approx(probs[3])

    def test_score_weight_length_checked(self, item: GPCMItemModel) -> None:
        with pytest.raises(InvalidParameterShapeError):
            item.score_weights = [0.0, 1.0]

    def test_raw_form_matches_log_domain(self) -> None:
        raw = GPCMItemModel(1.1, [0.0, -0.5, 0.5], log_domain=False)
        stable = GPCMItemModel(1.1, [0.0, -0.5, 0.5])
        np.testing.assert_allclose(
            raw.probabilities(0.7), stable.probabilities(0.7), rtol=1e-12
        )

    @pytest.mark.parametrize("category", [-1, 4, 50])
    def test_category_out_of_range(
        self, item: GPCMItemModel, category: int
    ) -> None:
        """Categories outside 0..m-1 fail instead of reading past the array."""
        with pytest.raises(IndexError, match="Category"):
            item.probability(0.0, category)
        with pytest.raises(IndexError, match="Category"):
            item.gradient(0.0, category)
        with pytest.raises(IndexError):
            item.probability_at(0.0, [1.0, 0.0, 0.5], 2, 1.7)


class TestGradient:
    def test_gradient_matches_numerical(self, item: GPCMItemModel) -> None:
        iparam = item.get_item_parameter_array()
        for k in range(item.n_categories):
            analytical = item.gradient(0.4, k)
            numerical = np.zeros_like(iparam)
            for j in range(len(iparam)):
                plus, minus = iparam.copy(), iparam.copy()
                plus[j] += EPS
                minus[j] -= EPS
                numerical[j] = (
                    item.probability_at(0.4, plus, k, 1.7)
                    - item.probability_at(0.4, minus, k, 1.7)
                ) / (2 * EPS)
            np.testing.assert_allclose(
                analytical, numerical, rtol=1e-6, atol=1e-9
            )

    def test_gradient_at_matches_stored(self, item: GPCMItemModel) -> None:
        np.testing.assert_array_equal(
            item.gradient(0.1, 2),
            item.gradient_at(0.1, item.get_item_parameter_array(), 2, 1.7),
        )


class TestDerivativeAndInformation:
    def test_deriv_theta_matches_numerical(self) -> None:
        item = GPCMItemModel(1.3, [0.0, -1.2, 0.1, 0.9], scaling_constant=1.0)
        for theta in [-1.0, 0.2, 1.5]:
            numerical = (
                item.expected_value(theta + EPS)
                - item.expected_value(theta - EPS)
            ) / (2 * EPS)
            assert item.deriv_theta(theta) == pytest.approx(
                numerical, rel=1e-6
            )

    def test_information_vectorized(self, item: GPCMItemModel) -> None:
        theta = np.array([-1.0, 0.0, 2.0])
        info = item.item_information(theta)

        assert info.shape == (3,)
        for i, t in enumerate(theta):
            assert info[i] == item.item_information_at(float(t))

    def test_information_peaks_near_steps(self, item: GPCMItemModel) -> None:
        assert item.item_information_at(0.0) > item.item_information_at(5.0)

    def test_deriv_theta_keeps_unscaled_denominator(self) -> None:
        """With D != 1 the denominator term omits D."""
        item = GPCMItemModel(1.0, [0.0, -1.0, 1.0])

        assert item.deriv_theta(0.3) == pytest.approx(2.1677, abs=1e-3)
        # The exact derivative of the expected score is about 0.4655
        assert item.deriv_theta(0.3) != pytest.approx(0.4655, abs=0.1)


class TestParameterSetters:
    def test_set_step_parameters_keeps_first_step(
        self, item: GPCMItemModel
    ) -> None:
        item.set_step_parameters([-1.0, 0.0, 1.0])
        np.testing.assert_array_equal(item.steps, [0.0, -1.0, 0.0, 1.0])

    def test_set_step_parameters_too_large(self, item: GPCMItemModel) -> None:
        with pytest.raises(InvalidParameterShapeError, match="too large"):
            item.set_step_parameters([0.0, 0.0, 0.0, 0.0])

    def test_set_step_parameters_too_small(self, item: GPCMItemModel) -> None:
        with pytest.raises(InvalidParameterShapeError, match="too small"):
            item.set_step_parameters([0.0, 0.0])

    def test_set_standard_errors(self, item: GPCMItemModel) -> None:
        item.set_standard_errors([0.1, 0.0, 0.2, 0.3, 0.4])

        assert item.discrimination_std_error == 0.1
        np.testing.assert_array_equal(
            item.step_std_error, [0.0, 0.2, 0.3, 0.4]
        )

    def test_set_standard_errors_wrong_length(
        self, item: GPCMItemModel
    ) -> None:
        with pytest.raises(InvalidParameterShapeError):
            item.set_standard_errors([0.1, 0.2])

    def test_two_dimensional_steps_rejected(
        self, item: GPCMItemModel
    ) -> None:
        with pytest.raises(InvalidParameterShapeError, match="1D"):
            item.set_step_parameters([[-1.0, 0.0, 1.0]])
        with pytest.raises(InvalidParameterShapeError, match="1D"):
            item.set_proposal_step_parameters(np.zeros((2, 2)))


class TestGenericParameterAccess:
    def test_supported_parameters(self, item: GPCMItemModel) -> None:
        assert item.get_parameter(ParameterName.DISCRIMINATION) == 1.3
        item.set_parameter(ParameterName.STEPS, [0.0, -1.0, 0.0, 1.0])
        np.testing.assert_array_equal(
            item.get_parameter(ParameterName.STEPS), [0.0, -1.0, 0.0, 1.0]
        )

    @pytest.mark.parametrize(
        "parameter",
        [ParameterName.GUESSING, ParameterName.DIFFICULTY],
    )
    def test_unsupported_parameter(
        self, item: GPCMItemModel, parameter: ParameterName
    ) -> None:
        with pytest.raises(UnsupportedParameterError) as exc_info:
            item.get_parameter(parameter)

        assert exc_info.value.model_type == "gpcm"
        assert exc_info.value.parameter == parameter.value

    def test_unsupported_setter(self, item: GPCMItemModel) -> None:
        with pytest.raises(NotImplementedError):
            item.set_proposal_parameter(ParameterName.SLIPPING, 0.1)

    def test_steps_round_trip(self, item: GPCMItemModel) -> None:
        """Generic step access reads and writes all m steps."""
        steps = item.get_parameter(ParameterName.STEPS)

        item.set_parameter(ParameterName.STEPS, steps)
        item.set_proposal_parameter(ParameterName.STEPS, steps)

        np.testing.assert_array_equal(item.steps, steps)
        assert item.commit() == 0.0

    def test_generic_steps_first_step_checked(
        self, item: GPCMItemModel
    ) -> None:
        with pytest.raises(InvalidParameterShapeError, match="fixed to 0"):
            item.set_parameter(ParameterName.STEPS, [0.2, -1.0, 0.0, 1.0])


class TestProposalCommit:
    def test_commit_returns_max_change(self, item: GPCMItemModel) -> None:
        item.set_proposal_discrimination(1.5)
        item.set_proposal_step_parameters([0.0, -1.0, 0.1, 0.4])

        change = item.accept_all_proposal_values()

        assert change == pytest.approx(0.5)
        assert item.discrimination == 1.5
        np.testing.assert_array_equal(item.steps, [0.0, -1.0, 0.1, 0.4])

    def test_commit_without_proposal_is_zero(
        self, item: GPCMItemModel
    ) -> None:
        assert item.commit() == 0.0

    def test_fixed_item_commit(self) -> None:
        item = GPCMItemModel(1.0, [0.0, 0.5], fixed=True)
        item.set_proposal_discrimination(3.0)
        item.set_proposal_step_parameters([0.0, -2.0])

        assert item.accept_all_proposal_values() == 0.0
        assert item.discrimination == 1.0
        np.testing.assert_array_equal(item.steps, [0.0, 0.5])

    def test_proposal_first_step_must_be_zero(
        self, item: GPCMItemModel
    ) -> None:
        with pytest.raises(InvalidParameterShapeError, match="fixed to 0"):
            item.set_proposal_step_parameters([0.1, 0.0, 0.0, 0.0])

    def test_proposal_length_checked(self, item: GPCMItemModel) -> None:
        with pytest.raises(InvalidParameterShapeError, match="too small"):
            item.set_proposal_step_parameters([0.0, 0.0])

    def test_stage_and_discard(self, item: GPCMItemModel) -> None:
        item.stage(
            GPCMParameters(discrimination=2.0, steps=(0.0, 0.0, 0.0, 0.0))
        )
        assert item.proposal.discrimination == 2.0

        item.discard_proposal()

        assert item.proposal == item.parameters
        assert item.commit() == 0.0

    def test_stage_wrong_category_count(self, item: GPCMItemModel) -> None:
        with pytest.raises(InvalidParameterShapeError):
            item.stage(GPCMParameters(discrimination=1.0, steps=(0.0, 0.0)))

    def test_direct_setters_survive_commit(
        self, item: GPCMItemModel
    ) -> None:
        """Values set directly are not rolled back by a later commit."""
        item.set_discrimination(2.0)
        item.set_step_parameters([-0.5, 0.0, 0.5])

        assert item.commit() == 0.0
        assert item.discrimination == 2.0
        np.testing.assert_array_equal(item.steps, [0.0, -0.5, 0.0, 0.5])

    def test_set_step_parameters_keeps_staged_discrimination(
        self, item: GPCMItemModel
    ) -> None:
        item.set_proposal_discrimination(1.5)
        item.set_step_parameters([-1.0, 0.0, 1.0])

        assert item.commit() == pytest.approx(0.2)
        assert item.discrimination == 1.5

    def test_scale_survives_commit(self, item: GPCMItemModel) -> None:
        item.scale(0.5, 2.0)
        scaled = item.get_item_parameter_array()

        assert item.commit() == 0.0
        np.testing.assert_array_equal(item.get_item_parameter_array(), scaled)


class TestPriors:
    def test_gradient_penalized(self, item: GPCMItemModel) -> None:
        item.add_discrimination_prior(NormalPrior(mean=1.0, sd=0.5))
        item.add_step_prior_at(NormalPrior(mean=0.0, sd=2.0), 2)
        iparam = item.get_item_parameter_array()
        grad = np.zeros(5)

        result = item.add_priors_to_log_likelihood_gradient(grad, iparam)

        assert result is grad
        # -(-(1.3 - 1.0) / 0.25) and -(-(0.1 - 0.0) / 4)
        assert grad[0] == pytest.approx(1.2)
        assert grad[3] == pytest.approx(0.025)
        assert grad[1] == grad[2] == grad[4] == 0.0

    def test_log_likelihood_unchanged(self, item: GPCMItemModel) -> None:
        item.add_discrimination_prior(NormalPrior(mean=5.0, sd=0.1))
        iparam = item.get_item_parameter_array()

        assert item.add_priors_to_log_likelihood(-12.5, iparam) == -12.5

    def test_step_prior_index_checked(self, item: GPCMItemModel) -> None:
        with pytest.raises(IndexError):
            item.add_step_prior_at(NormalPrior(), 4)


class TestEquating:
    def test_identity_scale_unchanged(self, item: GPCMItemModel) -> None:
        before = item.get_item_parameter_array()
        item.scale(0.0, 1.0)
        np.testing.assert_array_equal(item.get_item_parameter_array(), before)

    def test_scale(self, item: GPCMItemModel) -> None:
        item.set_standard_errors([0.1, 0.0, 0.2, 0.2, 0.2])
        item.scale(0.5, 2.0)

        assert item.discrimination == pytest.approx(0.65)
        assert item.steps[0] == 0.0
        np.testing.assert_allclose(item.steps[1:], [-1.9, 0.7, 2.3])
        np.testing.assert_allclose(item.step_std_error, [0.0, 0.4, 0.4, 0.4])
        assert item.discrimination_std_error == 0.1

    def test_t_star_identity(self, item: GPCMItemModel) -> None:
        for theta in [-1.5, 0.0, 2.0]:
            for k in range(4):
                assert item.t_star_probability(
                    theta, k, 0.0, 1.0
                ) == pytest.approx(item.probability(theta, k), rel=1e-14)

    def test_t_star_matches_scaled_item(self, item: GPCMItemModel) -> None:
        scaled = GPCMItemModel(item.discrimination, item.steps)
        scaled.scale(0.3, 1.2)
        for k in range(4):
            assert item.t_star_probability(0.7, k, 0.3, 1.2) == pytest.approx(
                scaled.probability(0.7, k)
            )

    def test_t_sharp_inverts_t_star(self, item: GPCMItemModel) -> None:
        """Transforming forward then backward recovers the item."""
        scaled = GPCMItemModel(item.discrimination, item.steps)
        scaled.scale(0.3, 1.2)
        for k in range(4):
            assert scaled.t_sharp_probability(
                0.7, k, 0.3, 1.2
            ) == pytest.approx(item.probability(0.7, k))

    def test_out_of_range_category(self, item: GPCMItemModel) -> None:
        assert item.t_star_probability(0.0, -1, 0.0, 1.0) == 0.0
        assert item.t_sharp_probability(0.0, 4, 0.0, 1.0) == 0.0

    def test_expected_value_transforms(self, item: GPCMItemModel) -> None:
        assert item.t_star_expected_value(0.2, 0.0, 1.0) == pytest.approx(
            item.expected_value(0.2)
        )
        assert item.t_sharp_expected_value(0.2, 0.0, 1.0) == pytest.approx(
            item.expected_value(0.2)
        )

    def test_increment_mean_mean(self, item: GPCMItemModel) -> None:
        mean_a, mean_b = RunningMean(), RunningMean()
        item.increment_mean_mean(mean_a, mean_b)

        assert mean_a.result == 1.3
        assert mean_b.n == 3
        assert mean_b.result == pytest.approx((-1.2 + 0.1 + 0.9) / 3)


class TestRendering:
    def test_str(self, item: GPCMItemModel) -> None:
        item.set_standard_errors([0.05, 0.0, 0.1, 0.1, 0.1])
        lines = str(item).split("\n")

        assert lines[0] == (
            "    item01: [ 1.300000, -1.200000,  0.100000,  0.900000]"
        )
        assert lines[1] == (
            "            ( 0.050000,  0.100000,  0.100000,  0.100000)"
        )

    def test_repr(self, item: GPCMItemModel) -> None:
        assert repr(item).startswith("GPCMItemModel(name='item01'")
